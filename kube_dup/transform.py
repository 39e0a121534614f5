"""Library for turning a pod template into an independent duplicate.

A duplicate is meant for inspection and debugging, so a few mutations are applied
to the copied pod spec depending on `DuplicationOptions`:
  - Probes are removed so the kubelet does not restart or hide the pod.
  - The command is replaced with an idle loop so the workload does not start.
  - Ownership is removed so the owning controller does not adopt or delete it.

All functions here work on copies and never modify their inputs.
"""

import copy
import logging
from typing import Any

from .config import DuplicationOptions, IDENTITY_LABELS, LOOP_COMMAND
from .resource import POD_KIND

__all__ = [
    "apply_options",
    "build_duplicate",
    "generic_copy",
    "strip_ownership",
]

_LOGGER = logging.getLogger(__name__)

RESTART_POLICY_NEVER = "Never"
PROBE_KEYS = ("readinessProbe", "livenessProbe")
OWNERSHIP_KEYS = ("ownerReferences", "uid", "resourceVersion")


def _containers(spec: dict[str, Any]) -> list[dict[str, Any]]:
    return spec.get("containers") or []


def _mutate_spec(
    spec: dict[str, Any], options: DuplicationOptions
) -> dict[str, Any]:
    for container in _containers(spec):
        if options.disable_probes:
            for key in PROBE_KEYS:
                container.pop(key, None)
        if options.loop_command:
            container["command"] = list(LOOP_COMMAND)
        if options.image:
            container["image"] = options.image
    return spec


def strip_ownership(metadata: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the metadata without any link to a controller."""
    result = copy.deepcopy(metadata)
    for key in OWNERSHIP_KEYS:
        result.pop(key, None)
    if labels := result.get("labels"):
        for label in IDENTITY_LABELS:
            labels.pop(label, None)
    return result


def apply_options(
    kind: str,
    spec: dict[str, Any],
    metadata: dict[str, Any],
    options: DuplicationOptions,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return a copy of the pod spec and metadata with the options applied."""
    spec = _mutate_spec(copy.deepcopy(spec), options)
    metadata = copy.deepcopy(metadata)
    if kind == POD_KIND or options.strip_template_ownership:
        metadata = strip_ownership(metadata)
    return spec, metadata


def build_duplicate(
    name: str,
    spec: dict[str, Any],
    labels: dict[str, str] | None,
    options: DuplicationOptions,
    namespace: str | None = None,
) -> dict[str, Any]:
    """Build a standalone Pod object from a pod spec.

    The spec and labels are copied so the result shares no state with the
    source object.
    """
    pod_spec = _mutate_spec(copy.deepcopy(spec), options)
    pod_spec["restartPolicy"] = RESTART_POLICY_NEVER
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    metadata["labels"] = dict(labels or {})
    return {
        "apiVersion": "v1",
        "kind": POD_KIND,
        "metadata": metadata,
        "spec": pod_spec,
    }


def generic_copy(content: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a full copy of an object with only the name replaced."""
    result = copy.deepcopy(content)
    result.setdefault("metadata", {})["name"] = name
    return result
