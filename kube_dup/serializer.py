"""Library for rendering objects for the editor and reading them back.

The serializer is created for one output format and passed to the code that
needs it:

```python
from kube_dup.serializer import Serializer

serializer = Serializer("yaml")
text = serializer.dumps([pod])
objects = serializer.loads(text.encode())
```

Documents are UTF-8 text. Comment lines (first non-blank character is `#`) are
never part of an object and are removed before decoding.
"""

import json
import logging
from typing import Any

import yaml

from .config import JSON, YAML
from .exceptions import InputException, SyntaxException

__all__ = [
    "Serializer",
    "strip_comments",
    "has_lines",
    "to_crlf",
    "FORMATS",
]

_LOGGER = logging.getLogger(__name__)

FORMATS = (YAML, JSON)
COMMENT = b"#"
LIST_KIND = "List"


class _Dumper(yaml.SafeDumper):
    """Dumper that keeps multi-line strings readable."""


def _str_presenter(dumper: yaml.Dumper, data: Any) -> Any:
    """Represent multi-line yaml strings as you'd expect.

    See https://github.com/yaml/pyyaml/issues/240
    """
    return dumper.represent_scalar(
        "tag:yaml.org,2002:str", data, style="|" if data.count("\n") > 0 else None
    )


_Dumper.add_representer(str, _str_presenter)


def strip_comments(data: bytes) -> bytes:
    """Return the document without comment lines."""
    lines = data.splitlines(keepends=True)
    return b"".join(line for line in lines if not line.lstrip().startswith(COMMENT))


def has_lines(data: bytes) -> bool:
    """Return True if any line has content that is not a comment."""
    for line in data.splitlines():
        if (stripped := line.strip()) and not stripped.startswith(COMMENT):
            return True
    return False


def to_crlf(data: bytes) -> bytes:
    """Convert line endings to CRLF."""
    return data.replace(b"\r\n", b"\n").replace(b"\n", b"\r\n")


class Serializer:
    """Converts objects to and from one of the supported document formats."""

    def __init__(self, output_format: str = YAML) -> None:
        """Initialize Serializer."""
        if output_format not in FORMATS:
            raise InputException(
                f"Unsupported output format '{output_format}', expected one of {FORMATS}"
            )
        self._format = output_format

    @property
    def format(self) -> str:
        return self._format

    @property
    def ext(self) -> str:
        """File extension for documents in this format."""
        return f".{self._format}"

    @property
    def add_header(self) -> bool:
        """Whether a comment header may be placed above the document.

        A comment header is never written on top of json content.
        """
        return self._format == YAML

    def dumps(self, objs: list[dict[str, Any]]) -> str:
        """Render the objects as a single document."""
        if self._format == JSON:
            if len(objs) == 1:
                return json.dumps(objs[0], indent=4, sort_keys=False) + "\n"
            return (
                json.dumps(
                    {"apiVersion": "v1", "kind": LIST_KIND, "items": objs},
                    indent=4,
                    sort_keys=False,
                )
                + "\n"
            )
        if len(objs) == 1:
            return yaml.dump(objs[0], Dumper=_Dumper, sort_keys=False)
        return yaml.dump_all(objs, Dumper=_Dumper, sort_keys=False, explicit_start=True)

    def loads(self, data: bytes) -> list[dict[str, Any]]:
        """Decode the document into a flat list of objects.

        Json content is valid yaml so either format is accepted.
        """
        try:
            docs = list(yaml.safe_load_all(strip_comments(data).decode("utf-8")))
        except (yaml.YAMLError, UnicodeDecodeError) as err:
            raise SyntaxException(str(err)) from err
        objs: list[dict[str, Any]] = []
        for doc in docs:
            if doc is None:
                continue
            if not isinstance(doc, dict):
                raise SyntaxException(
                    f"expected an object but was {type(doc).__name__}"
                )
            if doc.get("kind") == LIST_KIND and isinstance(doc.get("items"), list):
                for item in doc["items"]:
                    if not isinstance(item, dict):
                        raise SyntaxException(
                            f"expected an object in List but was {type(item).__name__}"
                        )
                    objs.append(item)
                continue
            objs.append(doc)
        _LOGGER.debug("Decoded %d objects", len(objs))
        return objs
