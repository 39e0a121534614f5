"""Command line action for duplicating a workload."""

from argparse import ArgumentParser, BooleanOptionalAction
import dataclasses
import logging

from kube_dup.client import KubectlClient, ResourceClient
from kube_dup.config import DuplicationOptions, EditOptions, EDITOR_ENVS, YAML
from kube_dup.duplicate import clone
from kube_dup.edit import EditLoop
from kube_dup.editor import Editor
from kube_dup.exceptions import DupException, InputException
from kube_dup.resource import SourceResource
from kube_dup.serializer import FORMATS, Serializer

_LOGGER = logging.getLogger(__name__)


def parse_target(resource: list[str]) -> tuple[str, str, str | None]:
    """Return the type, name and optional duplicate name from the arguments.

    Accepts either `TYPE NAME [DUP_NAME]` or `TYPE/NAME [DUP_NAME]`.
    """
    if resource and "/" in resource[0]:
        kind, _, name = resource[0].partition("/")
        rest = resource[1:]
    elif len(resource) >= 2:
        kind, name = resource[0], resource[1]
        rest = resource[2:]
    else:
        raise InputException(
            f"Expected TYPE NAME or TYPE/NAME but got '{' '.join(resource)}'"
        )
    if not kind or not name:
        raise InputException(f"Invalid resource '{' '.join(resource)}'")
    if len(rest) > 1:
        raise InputException(f"Unexpected arguments: {' '.join(rest[1:])}")
    return kind, name, rest[0] if rest else None


class DuplicateAction:
    """Duplicate a workload into an independent object."""

    @classmethod
    def register(cls, args: ArgumentParser) -> ArgumentParser:
        """Register the duplicate command arguments."""
        args.add_argument(
            "resource",
            nargs="+",
            help="TYPE NAME or TYPE/NAME of the object to duplicate, optionally "
            "followed by the name of the duplicate",
        )
        args.add_argument(
            "--namespace",
            "-n",
            type=str,
            default=None,
            help="If present, the namespace scope for this request",
        )
        args.add_argument(
            "--context",
            type=str,
            default=None,
            help="The name of the kubeconfig context to use",
        )
        args.add_argument(
            "--kubeconfig",
            type=str,
            default=None,
            help="Path to the kubeconfig file to use",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=FORMATS,
            default=YAML,
            help="Format of the document opened in the editor",
        )
        args.add_argument(
            "--windows-line-endings",
            default=DuplicationOptions.windows_line_endings,
            action=BooleanOptionalAction,
            help="Defaults to the line ending native to your platform.",
        )
        args.add_argument(
            "--skip-edit",
            "-s",
            default=False,
            action="store_true",
            help="Skip editing duplicated resource before creation",
        )
        args.add_argument(
            "--duplicate-pod",
            default=True,
            action=BooleanOptionalAction,
            help="Create a standalone Pod from the pod template of a workload. With "
            "--no-duplicate-pod the object is copied as a whole and keeps server-set "
            "fields such as uid, resourceVersion and status, which must be removed in "
            "the editor before the API server accepts it",
        )
        args.add_argument(
            "--disable-probes",
            default=True,
            action=BooleanOptionalAction,
            help="Remove readiness and liveness probes from the containers",
        )
        args.add_argument(
            "--loop-command",
            default=False,
            action=BooleanOptionalAction,
            help="Replace the container commands with an idle loop",
        )
        args.add_argument(
            "--image",
            type=str,
            default=None,
            help="Replace the image of every container",
        )
        args.add_argument(
            "--save-config",
            default=False,
            action=BooleanOptionalAction,
            help="Store the created object in the last-applied-configuration annotation",
        )
        args.add_argument(
            "--validate",
            default=True,
            action=BooleanOptionalAction,
            help="Check the structure of the edited document before creating it",
        )
        args.add_argument(
            "--strip-template-ownership",
            default=False,
            action=BooleanOptionalAction,
            help="Also remove controller labels from pods built from a workload template",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        resource: list[str],
        namespace: str | None,
        context: str | None,
        kubeconfig: str | None,
        output: str,
        windows_line_endings: bool,
        skip_edit: bool,
        duplicate_pod: bool,
        disable_probes: bool,
        loop_command: bool,
        image: str | None,
        save_config: bool,
        validate: bool,
        strip_template_ownership: bool,
        client: ResourceClient | None = None,
        editor: Editor | None = None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        kind, name, dup_name = parse_target(resource)
        options = DuplicationOptions(
            duplicate_inner_pod=duplicate_pod,
            disable_probes=disable_probes,
            loop_command=loop_command,
            skip_edit=skip_edit,
            windows_line_endings=windows_line_endings,
            apply_annotation=save_config,
            image=image,
            name=dup_name,
            strip_template_ownership=strip_template_ownership,
        )
        client = client or KubectlClient(context=context, kubeconfig=kubeconfig)
        docs = await client.get(kind, name, namespace)
        sources = [SourceResource.parse_doc(doc) for doc in docs]
        duplicates = clone(options, sources)

        edit_options = EditOptions(output_format=output, validate=validate)
        failures = 0
        for duplicate in duplicates:
            obj_namespace = namespace or duplicate.get("metadata", {}).get("namespace")
            loop = EditLoop(
                client,
                editor or Editor.from_env(EDITOR_ENVS),
                Serializer(output),
                options=options,
                edit_options=dataclasses.replace(edit_options, namespace=obj_namespace),
            )
            if options.skip_edit:
                results = await loop.create([duplicate])
                failures += int(results.failed)
                continue
            result = await loop.run([duplicate])
            failures += int(result.failed)
        if failures:
            raise DupException(f"{failures} duplicate(s) were not created")
