"""Typed views of the workloads that carry a pod template.

Each supported kind nests its pod template at a different place in the object
(e.g. a CronJob holds it at `spec.jobTemplate.spec.template`). The adapters decode
a raw object into the typed shape of its kind and expose the pod metadata and
pod spec without the caller having to know the nesting:

```python
from kube_dup import adapter

view = adapter.decode("CronJob", doc)
print(view.pod_metadata, view.pod_spec)
```

Decoding never modifies the raw object.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import DecodeException, UnsupportedKindError
from .resource import (
    POD_KIND,
    DEPLOYMENT_KIND,
    STATEFUL_SET_KIND,
    JOB_KIND,
    CRON_JOB_KIND,
)

__all__ = [
    "PodTemplateAdapter",
    "PodAdapter",
    "DeploymentAdapter",
    "StatefulSetAdapter",
    "JobAdapter",
    "CronJobAdapter",
    "decode",
    "extract_pod",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class PodTemplateSpec(DataClassDictMixin):
    """The pod template of a workload."""

    spec: dict[str, Any]
    """The pod spec."""

    metadata: dict[str, Any] = field(default_factory=dict)
    """The metadata applied to pods created from the template."""


@dataclass
class WorkloadSpec(DataClassDictMixin):
    """The spec of a workload holding a pod template directly."""

    template: PodTemplateSpec


@dataclass
class JobTemplateSpec(DataClassDictMixin):
    """The job template of a CronJob."""

    spec: WorkloadSpec

    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class CronJobSpec(DataClassDictMixin):
    """The spec of a CronJob."""

    job_template: JobTemplateSpec = field(metadata=field_options(alias="jobTemplate"))


@dataclass
class PodTemplateAdapter(ABC, DataClassDictMixin):
    """Base class for all workload views."""

    api_version: str = field(metadata=field_options(alias="apiVersion"))
    """The apiVersion of the object."""

    @property
    @abstractmethod
    def pod_metadata(self) -> dict[str, Any]:
        """Return the metadata of the pods created by this object."""

    @property
    @abstractmethod
    def pod_spec(self) -> dict[str, Any]:
        """Return the pod spec of this object."""


@dataclass
class PodAdapter(PodTemplateAdapter):
    """A bare Pod."""

    spec: dict[str, Any]
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def pod_metadata(self) -> dict[str, Any]:
        return self.metadata

    @property
    def pod_spec(self) -> dict[str, Any]:
        return self.spec


@dataclass
class _TemplateWorkloadAdapter(PodTemplateAdapter):
    """A workload whose spec holds the pod template."""

    spec: WorkloadSpec

    @property
    def pod_metadata(self) -> dict[str, Any]:
        return self.spec.template.metadata

    @property
    def pod_spec(self) -> dict[str, Any]:
        return self.spec.template.spec


@dataclass
class DeploymentAdapter(_TemplateWorkloadAdapter):
    """A Deployment, pod template at `spec.template`."""


@dataclass
class StatefulSetAdapter(_TemplateWorkloadAdapter):
    """A StatefulSet, pod template at `spec.template`."""


@dataclass
class JobAdapter(_TemplateWorkloadAdapter):
    """A Job, pod template at `spec.template`."""


@dataclass
class CronJobAdapter(PodTemplateAdapter):
    """A CronJob, pod template at `spec.jobTemplate.spec.template`."""

    spec: CronJobSpec

    @property
    def pod_metadata(self) -> dict[str, Any]:
        return self.spec.job_template.spec.template.metadata

    @property
    def pod_spec(self) -> dict[str, Any]:
        return self.spec.job_template.spec.template.spec


# Match a prefix of apiVersion to ensure we have the right type of object.
# We don't check specific versions for forward compatibility on upgrade.
_ADAPTERS: dict[str, tuple[str, type[PodTemplateAdapter]]] = {
    POD_KIND: ("v1", PodAdapter),
    DEPLOYMENT_KIND: ("apps/", DeploymentAdapter),
    STATEFUL_SET_KIND: ("apps/", StatefulSetAdapter),
    JOB_KIND: ("batch/", JobAdapter),
    CRON_JOB_KIND: ("batch/", CronJobAdapter),
}


def decode(kind: str, content: dict[str, Any]) -> PodTemplateAdapter:
    """Decode a raw object into the typed view for its kind."""
    if not (entry := _ADAPTERS.get(kind)):
        raise UnsupportedKindError(kind)
    api_prefix, adapter_cls = entry
    if not isinstance(content, dict):
        raise DecodeException(f"Invalid {kind} is not a mapping: {content}")
    if not (api_version := content.get("apiVersion")):
        raise DecodeException(f"Invalid {kind} missing apiVersion: {content}")
    if not api_version.startswith(api_prefix):
        raise DecodeException(
            f"Invalid {kind} expected apiVersion '{api_prefix}' but was '{api_version}'"
        )
    if content.get("spec") is None:
        raise DecodeException(f"Invalid {kind} missing spec: {content}")
    try:
        view = adapter_cls.from_dict(content)
    except (MissingField, InvalidFieldValue) as err:
        raise DecodeException(f"Unable to decode {kind}: {err}") from err
    _LOGGER.debug("Decoded %s as %s", kind, adapter_cls.__name__)
    return view


def extract_pod(
    kind: str, content: dict[str, Any]
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return the pod metadata and pod spec held by a raw object."""
    view = decode(kind, content)
    return view.pod_metadata, view.pod_spec
