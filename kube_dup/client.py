"""Library for reading and creating objects in the cluster.

The default client shells out to `kubectl`, which takes care of authentication
and the kubeconfig:

```python
from kube_dup.client import KubectlClient

client = KubectlClient(context="kind-kind")
objs = await client.get("deployment", "web", "default")
```

Failures of a request are classified so callers can tell an invalid object from
a missing one:
  - `InvalidObjectError` when the server rejected the object, with one cause per field.
  - `ObjectNotFoundError` when a referenced object (e.g. the namespace) does not exist.
  - `ApiException` for anything else.
"""

from abc import ABC, abstractmethod
import json
import logging
import re
from typing import Any

from .command import Command, run
from .exceptions import (
    ApiException,
    CommandException,
    InvalidObjectError,
    ObjectNotFoundError,
)

__all__ = [
    "ResourceClient",
    "KubectlClient",
    "classify_error",
]

_LOGGER = logging.getLogger(__name__)

KUBECTL_BIN = "kubectl"

NOT_FOUND = "NotFound"
INVALID = "Invalid"

_REASON_RE = re.compile(r"Error from server \((?P<reason>\w+)\)")
_INVALID_RE = re.compile(r" is invalid: ?(?P<causes>.*)$", re.MULTILINE)
_CAUSE_LINE_RE = re.compile(r"^\s*\* (?P<cause>.+)$", re.MULTILINE)


def _parse_causes(message: str) -> list[str]:
    """Return the per-field causes of an invalid object message."""
    if not (match := _INVALID_RE.search(message)):
        return []
    if bullets := _CAUSE_LINE_RE.findall(message):
        return [cause.strip() for cause in bullets]
    causes = match.group("causes").strip()
    if causes.startswith("[") and causes.endswith("]"):
        return [cause.strip() for cause in causes[1:-1].split(", ") if cause.strip()]
    return [causes] if causes else []


def classify_error(message: str) -> ApiException:
    """Return the exception matching the error output of a request."""
    reason: str | None = None
    if match := _REASON_RE.search(message):
        reason = match.group("reason")
    if reason == NOT_FOUND:
        return ObjectNotFoundError(message, reason=reason)
    if reason == INVALID or _INVALID_RE.search(message):
        return InvalidObjectError(
            message, reason=INVALID, causes=_parse_causes(message)
        )
    return ApiException(message, reason=reason)


def _flatten(doc: dict[str, Any]) -> list[dict[str, Any]]:
    if str(doc.get("kind", "")).endswith("List") and isinstance(
        doc.get("items"), list
    ):
        return list(doc["items"])
    return [doc]


class ResourceClient(ABC):
    """Access to objects in the cluster."""

    @abstractmethod
    async def get(
        self, kind: str, name: str, namespace: str | None
    ) -> list[dict[str, Any]]:
        """Return the objects identified by kind and name."""

    @abstractmethod
    async def create(
        self, obj: dict[str, Any], namespace: str | None
    ) -> dict[str, Any]:
        """Create the object and return it as stored by the server."""


class KubectlClient(ResourceClient):
    """A client issuing requests with kubectl."""

    def __init__(
        self,
        context: str | None = None,
        kubeconfig: str | None = None,
        kubectl_bin: str = KUBECTL_BIN,
    ) -> None:
        """Initialize KubectlClient."""
        self._context = context
        self._kubeconfig = kubeconfig
        self._kubectl_bin = kubectl_bin

    def _args(self, namespace: str | None) -> list[str]:
        args = [self._kubectl_bin]
        if self._kubeconfig:
            args.extend(["--kubeconfig", self._kubeconfig])
        if self._context:
            args.extend(["--context", self._context])
        if namespace:
            args.extend(["--namespace", namespace])
        return args

    async def _run(self, args: list[str], stdin: bytes | None = None) -> Any:
        try:
            out = await run(Command(args), stdin=stdin)
        except CommandException as err:
            raise classify_error(str(err)) from err
        try:
            return json.loads(out)
        except ValueError as err:
            raise ApiException(f"Unable to parse kubectl output: {err}") from err

    async def get(
        self, kind: str, name: str, namespace: str | None
    ) -> list[dict[str, Any]]:
        """Return the objects identified by kind and name."""
        doc = await self._run(self._args(namespace) + ["get", kind, name, "-o", "json"])
        return _flatten(doc)

    async def create(
        self, obj: dict[str, Any], namespace: str | None
    ) -> dict[str, Any]:
        """Create the object and return it as stored by the server."""
        content = json.dumps(obj).encode("utf-8")
        return await self._run(
            self._args(namespace) + ["create", "-f", "-", "-o", "json"], stdin=content
        )
