"""Exceptions related to kube-dup."""

__all__ = [
    "DupException",
    "InputException",
    "UnsupportedKindError",
    "DecodeException",
    "ValidationException",
    "SyntaxException",
    "CommandException",
    "ApiException",
    "ObjectNotFoundError",
    "InvalidObjectError",
]


class DupException(Exception):
    """Generic base exception used for this library."""


class InputException(DupException):
    """Raised when the input objects or arguments are not formatted as expected."""


class UnsupportedKindError(DupException):
    """Raised when an object has no kind that can be duplicated."""

    def __init__(self, kind: str | None) -> None:
        super().__init__(f"Unsupported resource kind: {kind!r}")
        self.kind = kind


class DecodeException(InputException):
    """Raised when raw content cannot be converted to the typed shape of its kind."""


class ValidationException(DupException):
    """Raised when an edited document fails structural validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class SyntaxException(DupException):
    """Raised when an edited document cannot be decoded."""


class CommandException(DupException):
    """Raised when there is a failure running a subcommand."""


class ApiException(CommandException):
    """Raised when the cluster rejects a request."""

    def __init__(
        self, message: str, reason: str | None = None, causes: list[str] | None = None
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.causes = causes or []


class ObjectNotFoundError(ApiException):
    """Raised when the cluster reports that a referenced object does not exist."""


class InvalidObjectError(ApiException):
    """Raised when the cluster rejects an object as invalid."""
