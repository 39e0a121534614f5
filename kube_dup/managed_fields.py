"""Keep server-side managed fields out of the edited document.

Managed fields are bookkeeping written by the API server and are noisy to edit.
They are removed before an object is rendered for the editor and attached
again, matched by UID, before the edited objects are submitted.
"""

from collections.abc import Iterable
import logging
from typing import Any

__all__ = [
    "ManagedFieldsSnapshot",
    "snapshot",
    "restore",
]

_LOGGER = logging.getLogger(__name__)

MANAGED_FIELDS = "managedFields"

ManagedFieldsSnapshot = dict[str | None, list[dict[str, Any]] | None]


def _is_list(obj: dict[str, Any]) -> bool:
    return str(obj.get("kind", "")).endswith("List") and isinstance(
        obj.get("items"), list
    )


def _metadata(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("metadata") or {}


def snapshot(obj: dict[str, Any]) -> ManagedFieldsSnapshot:
    """Remove managed fields from the object and return them keyed by UID.

    List objects are visited recursively.
    """
    result: ManagedFieldsSnapshot = {}
    if _is_list(obj):
        for item in obj["items"]:
            result.update(snapshot(item))
        return result
    metadata = _metadata(obj)
    result[metadata.get("uid")] = metadata.pop(MANAGED_FIELDS, None)
    return result


def restore(objs: Iterable[dict[str, Any]], saved: ManagedFieldsSnapshot) -> None:
    """Attach managed fields recorded in a snapshot to the objects with the same UID."""
    for obj in objs:
        if _is_list(obj):
            restore(obj["items"], saved)
            continue
        metadata = _metadata(obj)
        if entries := saved.get(metadata.get("uid")):
            obj.setdefault("metadata", {})[MANAGED_FIELDS] = entries
        else:
            metadata.pop(MANAGED_FIELDS, None)
    _LOGGER.debug("Restored managed fields for %d UIDs", len(saved))
