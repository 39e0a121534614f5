"""Tests for the kube-dup command line tool."""

import argparse
from typing import Any

import pytest

from kube_dup.exceptions import (
    CommandException,
    DupException,
    InputException,
    ObjectNotFoundError,
)
from kube_dup.tool.duplicate import parse_target
from kube_dup.tool.kube_dup import _make_parser

from fakes import FakeClient, ScriptedEditor, make_deployment, make_pod

from . import run_command


@pytest.mark.parametrize(
    ("resource", "expected"),
    [
        (["deployment", "web"], ("deployment", "web", None)),
        (["deployment/web"], ("deployment", "web", None)),
        (["deploy", "web", "web-debug"], ("deploy", "web", "web-debug")),
        (["cj/report", "report-debug"], ("cj", "report", "report-debug")),
    ],
)
def test_parse_target(
    resource: list[str], expected: tuple[str, str, str | None]
) -> None:
    """Test parsing the object to duplicate from the arguments."""
    assert parse_target(resource) == expected


@pytest.mark.parametrize(
    "resource",
    [
        ["deployment"],
        ["deployment/"],
        ["/web"],
        ["deployment", "web", "a", "b"],
        ["deployment/web", "a", "b"],
    ],
)
def test_parse_target_invalid(resource: list[str]) -> None:
    """Test arguments that don't identify an object."""
    with pytest.raises(InputException):
        parse_target(resource)


def test_parser_defaults() -> None:
    """Test the default flags of the command."""
    args = _make_parser().parse_args(["deployment", "web"])
    assert args.resource == ["deployment", "web"]
    assert args.namespace is None
    assert args.output == "yaml"
    assert not args.skip_edit
    assert args.duplicate_pod
    assert args.disable_probes
    assert not args.loop_command
    assert args.image is None
    assert not args.save_config
    assert args.validate
    assert not args.strip_template_ownership


def test_parser_flags() -> None:
    """Test parsing every flag of the command."""
    args = _make_parser().parse_args(
        [
            "-n",
            "prod",
            "cj/report",
            "-o",
            "json",
            "-s",
            "--no-duplicate-pod",
            "--no-disable-probes",
            "--loop-command",
            "--image",
            "busybox",
            "--save-config",
            "--no-validate",
            "--windows-line-endings",
        ]
    )
    assert args.namespace == "prod"
    assert args.output == "json"
    assert args.skip_edit
    assert not args.duplicate_pod
    assert not args.disable_probes
    assert args.loop_command
    assert args.image == "busybox"
    assert args.save_config
    assert not args.validate
    assert args.windows_line_endings


def test_parser_invalid_output(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that only yaml and json can be edited."""
    with pytest.raises(SystemExit):
        _make_parser().parse_args(["deployment", "web", "-o", "xml"])
    assert "invalid choice" in capsys.readouterr().err


async def run_action(args: list[str], **kwargs: Any) -> None:
    """Run the command line action with the fake collaborators."""
    parsed = _make_parser().parse_args(args)
    action = parsed.cls()
    await action.run(**vars(parsed), **kwargs)


async def test_skip_edit(
    client: FakeClient, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test duplicating a Deployment without opening an editor."""
    await run_action(["deployment", "web", "--skip-edit"], client=client)

    assert len(client.created) == 1
    pod = client.created[0]
    assert pod["kind"] == "Pod"
    name = pod["metadata"]["name"]
    assert name.startswith("web-dup-")
    assert pod["metadata"]["namespace"] == "default"
    assert pod["metadata"]["labels"] == {"app": "web"}
    assert pod["spec"]["restartPolicy"] == "Never"
    for container in pod["spec"]["containers"]:
        assert "readinessProbe" not in container
        assert "livenessProbe" not in container
    assert capsys.readouterr().out == f"pod/{name} created\n"


async def test_edit(client: FakeClient) -> None:
    """Test duplicating a Pod and editing it before creation."""
    editor = ScriptedEditor(
        [lambda content: content.replace("app: web", "app: web-debug")]
    )
    await run_action(
        ["pod/web-7d9f8-abcde", "web-debug", "--loop-command"],
        client=client,
        editor=editor,
    )

    assert "name: web-debug\n" in editor.seen[0]
    assert "pod-template-hash" not in editor.seen[0]
    assert "ownerReferences" not in editor.seen[0]
    pod = client.created[0]
    assert pod["metadata"]["name"] == "web-debug"
    assert pod["metadata"]["labels"] == {"app": "web-debug"}
    assert pod["spec"]["containers"][0]["command"][0] == "sh"


async def test_edit_cancelled(client: FakeClient) -> None:
    """Test that an empty file cancels without an error."""
    editor = ScriptedEditor([lambda content: ""])
    await run_action(["deployment", "web"], client=client, editor=editor)
    assert not client.created


async def test_create_failure(client: FakeClient) -> None:
    """Test that failing to create the duplicate is reported."""
    client.create_errors = [
        ObjectNotFoundError('namespaces "default" not found', reason="NotFound")
    ]
    with pytest.raises(DupException, match="1 duplicate"):
        await run_action(["deployment", "web", "-s"], client=client)


async def test_not_found(client: FakeClient) -> None:
    """Test duplicating an object that does not exist."""
    with pytest.raises(ObjectNotFoundError):
        await run_action(["deployment", "api", "-s"], client=client)


async def test_whole_object(client: FakeClient) -> None:
    """Test copying the Deployment itself instead of its pod."""
    await run_action(
        ["deployment", "web", "web-copy", "-s", "--no-duplicate-pod"], client=client
    )
    deployment = client.created[0]
    assert deployment["kind"] == "Deployment"
    assert deployment["metadata"]["name"] == "web-copy"
    assert deployment["spec"] == make_deployment()["spec"]


async def test_namespace_flag() -> None:
    """Test that the duplicate stays in the namespace it was read from."""
    client = FakeClient([make_pod(namespace="prod")])
    await run_action(["pod", "web-7d9f8-abcde", "-n", "prod", "-s"], client=client)
    assert client.created[0]["metadata"]["namespace"] == "prod"


def test_parser_registers_action() -> None:
    """Test that the parser dispatches to the duplicate action."""
    args = _make_parser().parse_args(["deployment", "web"])
    assert isinstance(args, argparse.Namespace)
    assert args.cls.__name__ == "DuplicateAction"


async def test_help() -> None:
    """Test the installed command line tool."""
    result = await run_command(["--help"])
    assert "usage: kube-dup" in result
    assert "--skip-edit" in result


async def test_invalid_target() -> None:
    """Test that argument errors are reported before contacting the cluster."""
    with pytest.raises(CommandException, match="kube-dup error"):
        await run_command(["deployment"])


def test_help_whole_object_copy() -> None:
    """Test that the help explains which fields a whole-object copy keeps."""
    text = _make_parser().format_help()
    assert "--no-duplicate-pod" in text
    assert "resourceVersion" in text


async def test_edit_create_failure(client: FakeClient) -> None:
    """Test that edits kept after a failed create are reported as a failure."""
    client.create_errors = [
        ObjectNotFoundError('namespaces "default" not found', reason="NotFound")
    ]
    editor = ScriptedEditor([lambda content: content])
    with pytest.raises(DupException, match="1 duplicate"):
        await run_action(["deployment", "web"], client=client, editor=editor)
    assert not client.created
    assert editor.paths[0].exists()
