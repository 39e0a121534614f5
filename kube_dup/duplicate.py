"""Library for building duplicates of cluster objects.

Workloads with a pod template can be reduced to a single standalone Pod, any
other object is copied as a whole under a new name:

```python
from kube_dup import duplicate
from kube_dup.config import DuplicationOptions

pods = duplicate.clone(DuplicationOptions(), [source])
```

Building duplicates does not talk to the cluster. Either every source object is
duplicated or an exception is raised and nothing is returned.
"""

from collections.abc import Iterable
import logging
from typing import Any

from . import adapter
from .config import DuplicationOptions
from .exceptions import InputException
from .naming import generate_name, is_valid_dns_label
from .resource import ResourceClass, SourceResource, classify
from .transform import apply_options, build_duplicate, generic_copy

__all__ = [
    "clone",
]

_LOGGER = logging.getLogger(__name__)


def _duplicate_name(options: DuplicationOptions, source: SourceResource) -> str:
    if options.name:
        return options.name
    return generate_name(source.name)


def _clone_one(options: DuplicationOptions, source: SourceResource) -> dict[str, Any]:
    resource_class = classify(source.kind)
    name = _duplicate_name(options, source)
    if resource_class == ResourceClass.HAS_POD_TEMPLATE and options.duplicate_inner_pod:
        metadata, spec = adapter.extract_pod(source.kind, source.content)
        spec, metadata = apply_options(source.kind, spec, metadata, options)
        _LOGGER.info("Duplicating pod of %s as %s", source, name)
        return build_duplicate(
            name,
            spec,
            metadata.get("labels"),
            options,
            namespace=source.namespace,
        )
    _LOGGER.info("Duplicating %s as %s", source, name)
    return generic_copy(source.content, name)


def clone(
    options: DuplicationOptions, sources: Iterable[SourceResource]
) -> list[dict[str, Any]]:
    """Return a duplicate for every source object."""
    sources = list(sources)
    if options.name:
        if len(sources) != 1:
            raise InputException(
                f"A duplicate name can only be used with a single object, got {len(sources)}"
            )
        if not is_valid_dns_label(options.name):
            raise InputException(f"Invalid duplicate name: {options.name}")
    return [_clone_one(options, source) for source in sources]
