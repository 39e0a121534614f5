"""Library for naming duplicated objects.

Names of duplicates must be valid DNS-1123 labels since a duplicate is usually
a Pod. A name is derived from the source object name plus a short random suffix:

```python
from kube_dup import naming

naming.generate_name("web")  # e.g. "web-dup-3f9a"
```
"""

import logging
import re
import uuid

from slugify import slugify

from .exceptions import InputException

__all__ = [
    "generate_name",
    "is_valid_dns_label",
    "MAX_NAME_LENGTH",
]

_LOGGER = logging.getLogger(__name__)

MAX_NAME_LENGTH = 63
SUFFIX_SEPARATOR = "-dup-"
SUFFIX_LENGTH = 4

# https://kubernetes.io/docs/concepts/overview/working-with-objects/names/#dns-label-names
DNS_LABEL_RE = re.compile(r"^[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?$")
DASHES_RE = re.compile(r"(-+)")


def is_valid_dns_label(name: str) -> bool:
    """Return True if the name can be used as a DNS-1123 label."""
    return bool(DNS_LABEL_RE.fullmatch(name))


def _to_label(base: str) -> str:
    """Reduce a name to label characters, keeping runs of dashes as they are."""
    parts = [
        part if part.startswith("-") else slugify(part, lowercase=True, separator="-")
        for part in DASHES_RE.split(base)
    ]
    return "".join(parts).strip("-")


def _random_token() -> str:
    return uuid.uuid4().hex[:SUFFIX_LENGTH]


def generate_name(base: str) -> str:
    """Return a name for a duplicate of the object named `base`.

    The suffix is not guaranteed to be unique across the cluster, a create call
    will fail if the name is already taken.
    """
    suffix = f"{SUFFIX_SEPARATOR}{_random_token()}"
    max_base = MAX_NAME_LENGTH - len(suffix)
    label = base
    if not is_valid_dns_label(base):
        # Object names may be DNS subdomains, reduce them to label characters
        label = _to_label(base)
    if not label:
        raise InputException(f"Unable to derive a duplicate name from {base!r}")
    if len(label) > max_base:
        label = label[:max_base]
    name = f"{label}{suffix}"
    _LOGGER.debug("Generated name %s from %s", name, base)
    return name
