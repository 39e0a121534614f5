"""Structural validation of edited documents.

Validation runs on the document after comments were removed and before it is
decoded into objects. A document that cannot be parsed at all is left for the
decoder, which reports it as a syntax error.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any

import yaml

from .exceptions import ValidationException
from .resource import POD_KIND

__all__ = [
    "Validator",
    "NullValidator",
    "StructureValidator",
    "new_validator",
]

_LOGGER = logging.getLogger(__name__)


class Validator(ABC):
    """Checks the structure of an edited document."""

    @abstractmethod
    def validate(self, data: bytes) -> None:
        """Raise ValidationException if the document is not valid."""


class NullValidator(Validator):
    """A validator that accepts everything."""

    def validate(self, data: bytes) -> None:
        """Accept the document."""


def _check_str(doc: dict[str, Any], key: str, prefix: str, errors: list[str]) -> None:
    value = doc.get(key)
    if not value:
        errors.append(f"{prefix}{key}: Required value")
    elif not isinstance(value, str):
        errors.append(f"{prefix}{key}: Invalid value: expected string")


def _check_pod_spec(spec: dict[str, Any], errors: list[str]) -> None:
    containers = spec.get("containers")
    if not containers or not isinstance(containers, list):
        errors.append("spec.containers: Required value")
        return
    for i, container in enumerate(containers):
        prefix = f"spec.containers[{i}]."
        if not isinstance(container, dict):
            errors.append(f"{prefix[:-1]}: Invalid value: expected object")
            continue
        _check_str(container, "name", prefix, errors)
        _check_str(container, "image", prefix, errors)


def _check_object(doc: Any, errors: list[str]) -> None:
    if not isinstance(doc, dict):
        errors.append(f"Invalid value: expected object but was {type(doc).__name__}")
        return
    _check_str(doc, "apiVersion", "", errors)
    _check_str(doc, "kind", "", errors)
    metadata = doc.get("metadata")
    if not isinstance(metadata, dict):
        errors.append("metadata: Required value")
        return
    _check_str(metadata, "name", "metadata.", errors)
    for key in ("labels", "annotations"):
        values = metadata.get(key)
        if values is None:
            continue
        if not isinstance(values, dict) or not all(
            isinstance(v, str) for v in values.values()
        ):
            errors.append(f"metadata.{key}: Invalid value: expected map of strings")
    spec = doc.get("spec")
    if spec is not None and not isinstance(spec, dict):
        errors.append("spec: Invalid value: expected object")
    elif doc.get("kind") == POD_KIND:
        _check_pod_spec(spec or {}, errors)


class StructureValidator(Validator):
    """Checks that every object has the fields required to create it."""

    def validate(self, data: bytes) -> None:
        """Raise ValidationException listing every structural problem."""
        try:
            docs = list(yaml.safe_load_all(data.decode("utf-8")))
        except (yaml.YAMLError, UnicodeDecodeError) as err:
            _LOGGER.debug("Skipping validation of unparsable document: %s", err)
            return
        errors: list[str] = []
        for doc in docs:
            if doc is None:
                continue
            if isinstance(doc, dict) and doc.get("kind") == "List":
                for item in doc.get("items") or []:
                    _check_object(item, errors)
                continue
            _check_object(doc, errors)
        if errors:
            raise ValidationException(errors)


def new_validator(validate: bool) -> Validator:
    """Return the validator for the requested validation mode."""
    if validate:
        return StructureValidator()
    return NullValidator()
