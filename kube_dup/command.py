"""Library for running subprocesses with asyncio.

Stdout of a command is returned to the caller. A failure raises the exception
type of the command with the error output attached, so callers such as the
kubectl client can classify it:

```python
from kube_dup.command import Command, run

out = await run(Command(["kubectl", "version", "-o", "json"]))
```
"""

import asyncio
from dataclasses import dataclass
import logging
import os
import shlex
import subprocess

from .exceptions import CommandException

__all__ = [
    "Command",
    "run",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


@dataclass
class Command:
    """A command line and the settings used to run it."""

    cmd: list[str]
    """Program followed by its arguments."""

    exc: type[CommandException] = CommandException
    """Exception to throw in case of an error."""

    env: dict[str, str] | None = None
    """Extra environment variables, added to the current environment."""

    timeout: float = DEFAULT_TIMEOUT
    """Seconds to wait for the command before it is killed."""

    def __str__(self) -> str:
        """Render the command as a single shell-quoted string."""
        return shlex.join(self.cmd)

    async def run(self, stdin: bytes | None = None) -> bytes:
        """Run the command to completion, returning stdout."""
        _LOGGER.debug("Running command: %s", self)
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env={**os.environ, **(self.env or {})},
            )
        except OSError as err:
            raise self.exc(f"Unable to run command '{self}': {err}") from err
        try:
            out, errout = await asyncio.wait_for(proc.communicate(stdin), self.timeout)
        except asyncio.TimeoutError as err:
            proc.kill()
            await proc.wait()
            raise self.exc(f"Command '{self}' timed out") from err
        if proc.returncode:
            errors = [f"Command '{self}' failed with return code {proc.returncode}"]
            if out:
                errors.append(out.decode("utf-8", errors="replace"))
            if errout:
                errors.append(errout.decode("utf-8", errors="replace"))
            _LOGGER.debug("\n".join(errors))
            raise self.exc("\n".join(errors))
        return out


async def run(cmd: Command, stdin: bytes | None = None) -> str:
    """Run the specified command and return stdout as text."""
    out = await cmd.run(stdin)
    return out.decode("utf-8") if out else ""
