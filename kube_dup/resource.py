"""Representation of the source objects that are duplicated.

Objects are plain kubernetes documents as returned by the API server. A
`SourceResource` wraps a document with its identity so it can be passed around
without repeatedly digging through the metadata.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import InputException, UnsupportedKindError

__all__ = [
    "ResourceClass",
    "SourceResource",
    "NamedResource",
    "classify",
    "POD_KIND",
    "DEPLOYMENT_KIND",
    "STATEFUL_SET_KIND",
    "JOB_KIND",
    "CRON_JOB_KIND",
    "POD_TEMPLATE_KINDS",
]


POD_KIND = "Pod"
DEPLOYMENT_KIND = "Deployment"
STATEFUL_SET_KIND = "StatefulSet"
JOB_KIND = "Job"
CRON_JOB_KIND = "CronJob"

POD_TEMPLATE_KINDS = frozenset(
    {POD_KIND, DEPLOYMENT_KIND, STATEFUL_SET_KIND, JOB_KIND, CRON_JOB_KIND}
)

LIST_SUFFIX = "List"


class ResourceClass(str, Enum):
    """How a kind of object is duplicated."""

    HAS_POD_TEMPLATE = "HasPodTemplate"
    """The object holds a pod spec that can be extracted."""

    GENERIC = "Generic"
    """The object is copied as a whole."""


def classify(kind: str | None) -> ResourceClass:
    """Return the duplication class for the kind of an object."""
    if not kind or kind.endswith(LIST_SUFFIX):
        raise UnsupportedKindError(kind)
    if kind in POD_TEMPLATE_KINDS:
        return ResourceClass.HAS_POD_TEMPLATE
    return ResourceClass.GENERIC


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


@dataclass(frozen=True)
class SourceResource:
    """An object fetched from the cluster that will be duplicated."""

    kind: str
    """The kind of the object."""

    namespace: str | None
    """The namespace of the object."""

    name: str
    """The name of the object."""

    content: dict[str, Any]
    """The raw document, never modified."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "SourceResource":
        """Parse a SourceResource from a raw kubernetes object."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid object is not a mapping: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid object missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid object missing metadata.name: {doc}")
        return cls(
            kind=doc.get("kind") or "",
            namespace=metadata.get("namespace"),
            name=name,
            content=doc,
        )

    @property
    def metadata(self) -> dict[str, Any]:
        """The metadata block of the object."""
        return self.content.get("metadata") or {}

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.get("labels") or {}

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.get("annotations") or {}

    @property
    def owner_references(self) -> list[dict[str, Any]]:
        return self.metadata.get("ownerReferences") or []

    @property
    def uid(self) -> str | None:
        return self.metadata.get("uid")

    @property
    def resource_version(self) -> str | None:
        return self.metadata.get("resourceVersion")

    @property
    def named_resource(self) -> NamedResource:
        return NamedResource(kind=self.kind, namespace=self.namespace, name=self.name)

    def __str__(self) -> str:
        return str(self.named_resource)
