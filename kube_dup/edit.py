"""Interactive editing of duplicates before they are created.

An `EditLoop` renders the duplicate into a temporary file, opens it in the
user's editor and creates the objects found in the saved file. When the saved
file does not validate, cannot be parsed, or the server rejects an object, the
file is reopened with the failures listed in a comment header and the user's
edits in place. The loop ends when:
  - The objects were created.
  - The user saved an empty file (only comments or blank lines).
  - The user saved the file unchanged after it was reopened with an error.

The temporary file is removed when the session ends cleanly and kept whenever
something went wrong, in which case its path is reported.

```python
loop = EditLoop(client, Editor.from_env(EDITOR_ENVS), Serializer("yaml"))
result = await loop.run([pod])
```
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
import json
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

from .client import ResourceClient
from .config import DuplicationOptions, EditOptions, LAST_APPLIED_ANNOTATION
from .editor import Editor
from .exceptions import (
    ApiException,
    DupException,
    InputException,
    InvalidObjectError,
    ObjectNotFoundError,
    SyntaxException,
    ValidationException,
)
from .managed_fields import ManagedFieldsSnapshot, restore, snapshot
from .serializer import Serializer, has_lines, strip_comments, to_crlf
from .validator import Validator, new_validator

__all__ = [
    "EditLoop",
    "EditResult",
    "EditSession",
    "CommitResults",
    "Phase",
]

_LOGGER = logging.getLogger(__name__)

HEADER = """\
# Please edit the object below. Lines beginning with a '#' will be ignored,
# and an empty file will abort the edit. If an error occurs while saving this file will be
# reopened with the relevant failures.
#
"""

CANCELLED_EMPTY = "Edit cancelled, saved file was empty."
CANCELLED_NO_CHANGES = "Edit cancelled, no valid changes were saved."


class Phase(str, Enum):
    """States of an edit session."""

    RENDERING = "Rendering"
    AWAITING_EDITOR = "AwaitingEditor"
    VALIDATING = "Validating"
    PARSING = "Parsing"
    COMMITTING = "Committing"
    DONE = "Done"
    PRESERVED = "Preserved"
    CANCELLED = "Cancelled"


def _hash_on_line_break(text: str) -> str:
    """Continue a multi-line message as comment lines."""
    first, *rest = text.split("\n")
    continued = [line if line.startswith("#") else f"# {line}" for line in rest]
    return "\n".join([first, *continued])


@dataclass
class EditReason:
    """A message about why the file must be edited again."""

    head: str
    other: list[str] = field(default_factory=list)


@dataclass
class EditHeader:
    """The comment block placed above the document."""

    reasons: list[EditReason] = field(default_factory=list)

    def render(self) -> str:
        """Return the header as comment lines."""
        lines = [HEADER]
        for reason in self.reasons:
            if reason.other:
                lines.append(f"# {_hash_on_line_break(reason.head)}:\n")
            else:
                lines.append(f"# {_hash_on_line_break(reason.head)}\n")
            for other in reason.other:
                lines.append(f"# * {_hash_on_line_break(other)}\n")
            lines.append("#\n")
        return "".join(lines)


def _describe(obj: dict[str, Any]) -> str:
    kind = str(obj.get("kind") or "object").lower()
    name = (obj.get("metadata") or {}).get("name", "")
    return f'{kind} "{name}"'


@dataclass
class CommitResults:
    """The outcome of creating the objects of one pass."""

    reasons: list[EditReason] = field(default_factory=list)
    """Reasons to present when the file is reopened."""

    edit: list[dict[str, Any]] = field(default_factory=list)
    """Objects rejected as invalid, to be edited again."""

    created: list[dict[str, Any]] = field(default_factory=list)
    """Objects returned by the server after creation."""

    notfound: int = 0
    """Number of objects that failed because something was not found."""

    retryable: int = 0
    """Number of objects that failed for another reason."""

    errors: list[str] = field(default_factory=list)
    """Messages for objects that failed and will not be edited again."""

    @property
    def failed(self) -> bool:
        return bool(self.edit or self.notfound or self.retryable)

    def add_error(self, err: ApiException, obj: dict[str, Any]) -> str:
        """Record a failed create and return a message describing it."""
        description = _describe(obj)
        if isinstance(err, InvalidObjectError):
            self.edit.append(obj)
            self.reasons.append(
                EditReason(head=f"{description} was not valid", other=list(err.causes))
            )
            return f"error: {description} is invalid"
        if isinstance(err, ObjectNotFoundError):
            self.notfound += 1
            message = f"error: {description} could not be found on the server"
        else:
            self.retryable += 1
            message = f"error: {description} could not be created: {err}"
        self.errors.append(message)
        return message


@dataclass
class EditResult:
    """The terminal state of an edit session."""

    phase: Phase
    """One of DONE, PRESERVED or CANCELLED."""

    path: Path | None = None
    """The temporary file when it was kept."""

    created: list[dict[str, Any]] = field(default_factory=list)
    """Objects created in the cluster."""

    errors: list[str] = field(default_factory=list)
    """Messages for objects that could not be created."""

    message: str | None = None
    """Reason the session was cancelled."""

    @property
    def failed(self) -> bool:
        """Whether any edits were left uncreated."""
        if self.phase == Phase.CANCELLED and self.path is not None:
            return True
        return self.phase == Phase.PRESERVED or bool(self.errors)


@dataclass
class EditSession:
    """State carried across the iterations of one edit session."""

    objects: list[dict[str, Any]]
    """Copy of the objects presented the first time the editor opens."""

    header: EditHeader = field(default_factory=EditHeader)
    """Reasons listed when the file is reopened."""

    last_edited: bytes | None = None
    """Content saved by the user in the previous iteration."""

    path: Path | None = None
    """The temporary file of the latest iteration."""

    managed_fields: ManagedFieldsSnapshot | None = None
    """Managed fields removed from the objects before rendering."""

    contains_error: bool = False
    """Whether the previous iteration failed."""

    kept: list[Path] = field(default_factory=list)
    """Files holding edits of objects that failed and will not be edited again."""

    created: list[dict[str, Any]] = field(default_factory=list)
    """Objects created by every pass so far."""

    errors: list[str] = field(default_factory=list)
    """Messages for objects that failed and will not be edited again."""

    phase: Phase = Phase.RENDERING


def _normalized(data: bytes) -> bytes:
    return strip_comments(data).replace(b"\r\n", b"\n")


def _drop_annotation(obj: dict[str, Any]) -> None:
    """Remove the last-applied-configuration annotation from the object."""
    metadata = obj.get("metadata") or {}
    annotations = metadata.get("annotations") or {}
    annotations.pop(LAST_APPLIED_ANNOTATION, None)
    if not annotations:
        metadata.pop("annotations", None)


def _apply_annotation(obj: dict[str, Any]) -> None:
    """Record the object in its last-applied-configuration annotation."""
    _drop_annotation(obj)
    applied = json.dumps(obj, separators=(",", ":"), sort_keys=True)
    metadata = obj.setdefault("metadata", {})
    metadata["annotations"] = {
        **(metadata.get("annotations") or {}),
        LAST_APPLIED_ANNOTATION: applied,
    }


def _created_message(obj: dict[str, Any]) -> str:
    kind = str(obj.get("kind") or "object").lower()
    name = (obj.get("metadata") or {}).get("name", "")
    return f"{kind}/{name} created"


class EditLoop:
    """Runs edit sessions and creates the edited objects."""

    def __init__(
        self,
        client: ResourceClient,
        editor: Editor,
        serializer: Serializer,
        validator: Validator | None = None,
        options: DuplicationOptions | None = None,
        edit_options: EditOptions | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        """Initialize EditLoop."""
        self._client = client
        self._editor = editor
        self._serializer = serializer
        self._options = options or DuplicationOptions()
        self._edit_options = edit_options or EditOptions()
        self._validator = validator or new_validator(self._edit_options.validate)
        self._out = out or sys.stdout
        self._err = err or sys.stderr

    def _preserved(self, path: Path | None) -> None:
        """Tell the user where their changes were kept."""
        if path and path.exists():
            _LOGGER.warning("Edited file preserved at %s", path)
            print(f'A copy of your changes has been stored to "{path}"', file=self._err)

    def _keep(self, path: Path, results: CommitResults) -> None:
        """Keep the file holding edits of objects that failed for good."""
        if results.notfound:
            print(
                f'The edits you made on deleted resources have been saved to "{path}"',
                file=self._out,
            )
        self._preserved(path)

    def _reopen(self, session: EditSession, objs: list[dict[str, Any]]) -> bytes:
        """Render rejected objects again without the fields added for the commit."""
        objs = copy.deepcopy(objs)
        for obj in objs:
            session.managed_fields = {**(session.managed_fields or {}), **snapshot(obj)}
            if self._options.apply_annotation:
                _drop_annotation(obj)
        return self._serializer.dumps(objs).encode("utf-8")

    def _render(self, session: EditSession) -> bytes:
        """Return the content to present in the editor."""
        parts = []
        if self._serializer.add_header:
            parts.append(session.header.render().encode("utf-8"))
        if session.contains_error and session.last_edited is not None:
            # Reopen with the user's content as saved, the header above replaces
            # their comments
            parts.append(_normalized(session.last_edited))
        else:
            if session.managed_fields is None:
                session.managed_fields = {}
                for obj in session.objects:
                    session.managed_fields.update(snapshot(obj))
            parts.append(self._serializer.dumps(session.objects).encode("utf-8"))
        content = b"".join(parts)
        if self._options.windows_line_endings:
            content = to_crlf(content)
        return content

    def _check_namespace(self, objs: list[dict[str, Any]]) -> None:
        """Require the edited objects to stay in the session namespace."""
        if not (namespace := self._edit_options.namespace):
            return
        for obj in objs:
            metadata = obj.setdefault("metadata", {})
            if not (obj_namespace := metadata.get("namespace")):
                metadata["namespace"] = namespace
            elif obj_namespace != namespace:
                raise InputException(
                    f"the namespace from the provided object {obj_namespace!r} does "
                    f"not match the namespace {namespace!r}. You must pass "
                    f"'--namespace={obj_namespace}' to perform this operation."
                )

    async def create(
        self,
        objs: list[dict[str, Any]],
        managed_fields: ManagedFieldsSnapshot | None = None,
    ) -> CommitResults:
        """Create every object and collect the failures.

        All objects are attempted even when an earlier one failed.
        """
        if managed_fields is not None:
            restore(objs, managed_fields)
        self._check_namespace(objs)
        results = CommitResults()
        for obj in objs:
            if self._options.apply_annotation:
                _apply_annotation(obj)
            namespace = (obj.get("metadata") or {}).get("namespace")
            try:
                created = await self._client.create(obj, namespace)
            except ApiException as err:
                _LOGGER.debug("Create of %s failed: %s", _describe(obj), err)
                print(results.add_error(err, obj), file=self._err)
                continue
            results.created.append(created)
            print(_created_message(created or obj), file=self._out)
        return results

    async def run(self, objs: list[dict[str, Any]]) -> EditResult:
        """Run an edit session for the objects until it reaches a terminal state."""
        session = EditSession(objects=copy.deepcopy(objs))
        try:
            return await self._run(session)
        except DupException:
            self._preserved(session.path)
            raise

    async def _run(self, session: EditSession) -> EditResult:
        while True:
            session.phase = Phase.RENDERING
            content = self._render(session)

            session.phase = Phase.AWAITING_EDITOR
            previous = session.last_edited
            edited, path = await self._editor.launch_temp_file(
                f"{self._edit_options.temp_prefix}-edit-",
                self._serializer.ext,
                content,
            )

            # Reopened because of an error but nothing changed
            if (
                session.contains_error
                and previous is not None
                and _normalized(previous) == _normalized(edited)
            ):
                if session.path:
                    session.path.unlink(missing_ok=True)
                session.path = path
                session.phase = Phase.CANCELLED
                print(CANCELLED_NO_CHANGES, file=self._err)
                self._preserved(path)
                return EditResult(
                    phase=Phase.CANCELLED,
                    path=path,
                    created=session.created,
                    errors=session.errors,
                    message=CANCELLED_NO_CHANGES,
                )

            # The file from the previous pass is replaced by the new one
            if session.path:
                session.path.unlink(missing_ok=True)
            session.path = path
            session.last_edited = edited
            _LOGGER.debug("User edited:\n%s", edited.decode("utf-8", errors="replace"))

            if not has_lines(edited):
                path.unlink(missing_ok=True)
                session.path = None
                session.phase = Phase.CANCELLED
                print(CANCELLED_EMPTY, file=self._err)
                return EditResult(
                    phase=Phase.CANCELLED,
                    created=session.created,
                    errors=session.errors,
                    message=CANCELLED_EMPTY,
                )

            session.phase = Phase.VALIDATING
            try:
                self._validator.validate(strip_comments(edited))
            except ValidationException as err:
                reason = EditReason(
                    head="The edited file failed validation", other=err.errors
                )
                session.header = EditHeader(reasons=[reason])
                session.contains_error = True
                print(
                    f"error: the edited file failed validation: {err}", file=self._err
                )
                continue

            session.phase = Phase.PARSING
            try:
                updated = self._serializer.loads(edited)
            except SyntaxException as err:
                reason = EditReason(head=f"The edited file had a syntax error: {err}")
                session.header = EditHeader(reasons=[reason])
                session.contains_error = True
                continue

            session.phase = Phase.COMMITTING
            results = await self.create(updated, session.managed_fields)
            session.created.extend(results.created)
            session.errors.extend(results.errors)

            if results.edit:
                session.header = EditHeader(reasons=results.reasons)
                session.contains_error = True
                if results.notfound or results.retryable:
                    # The file still holds the edits of the objects that failed
                    # for good, it outlives the session
                    self._keep(path, results)
                    session.kept.append(path)
                    session.path = None
                if results.created or results.notfound or results.retryable:
                    # Only the rejected objects are edited again
                    session.last_edited = self._reopen(session, results.edit)
                continue

            if results.notfound or results.retryable:
                session.phase = Phase.PRESERVED
                self._keep(path, results)
                return EditResult(
                    phase=Phase.PRESERVED,
                    path=path,
                    created=session.created,
                    errors=session.errors,
                )

            path.unlink(missing_ok=True)
            session.path = None
            if session.kept:
                session.phase = Phase.PRESERVED
                return EditResult(
                    phase=Phase.PRESERVED,
                    path=session.kept[-1],
                    created=session.created,
                    errors=session.errors,
                )
            session.phase = Phase.DONE
            return EditResult(phase=Phase.DONE, created=session.created)
