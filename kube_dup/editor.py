"""Library for handing a document to the user's editor.

The editor is an external process that receives a single file path, edits the
file in place and exits when the user is done. It is picked from the first
non-empty environment variable in a list (e.g. `KUBE_EDITOR`, `EDITOR`) and
falls back to a platform default.
"""

import asyncio
from collections.abc import Mapping, Sequence
import logging
import os
from pathlib import Path
import shlex
import tempfile

import aiofiles

from .exceptions import CommandException

__all__ = [
    "Editor",
    "editor_args",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"
WINDOWS_EDITOR = "notepad"


def editor_args(
    envs: Sequence[str], environ: Mapping[str, str] | None = None
) -> list[str]:
    """Return the editor command line selected by the environment."""
    if environ is None:
        environ = os.environ
    for env in envs:
        if value := environ.get(env, "").strip():
            return shlex.split(value, posix=os.name != "nt")
    return [WINDOWS_EDITOR if os.name == "nt" else DEFAULT_EDITOR]


class Editor:
    """An editor process launched on a file."""

    def __init__(self, args: list[str]) -> None:
        """Initialize Editor."""
        self._args = args

    @classmethod
    def from_env(cls, envs: Sequence[str]) -> "Editor":
        """Create the Editor selected by the environment variables."""
        return cls(editor_args(envs))

    def __str__(self) -> str:
        return " ".join([shlex.quote(arg) for arg in self._args])

    async def launch(self, path: Path) -> None:
        """Open the file and wait until the editor exits."""
        _LOGGER.debug("Opening file with editor: %s %s", self, path)
        try:
            # The editor takes over the terminal so no streams are captured
            proc = await asyncio.create_subprocess_exec(*self._args, str(path))
        except OSError as err:
            raise CommandException(f"Unable to launch editor '{self}': {err}") from err
        await proc.wait()
        if proc.returncode:
            raise CommandException(
                f"Editor '{self}' failed with return code {proc.returncode}"
            )

    async def launch_temp_file(
        self, prefix: str, suffix: str, content: bytes
    ) -> tuple[bytes, Path]:
        """Write the content to a new temporary file and open it in the editor.

        Returns the edited content and the path of the file, which is left in
        place for the caller to remove.
        """
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix)
        os.close(fd)
        path = Path(name)
        async with aiofiles.open(path, mode="wb") as temp_file:
            await temp_file.write(content)
        try:
            await self.launch(path)
        except CommandException as err:
            raise CommandException(f"{err} (file kept at {path})") from err
        async with aiofiles.open(path, mode="rb") as temp_file:
            edited = await temp_file.read()
        return edited, path
