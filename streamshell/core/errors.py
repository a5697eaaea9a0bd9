"""Error Hierarchy — failure kinds and their HTTP status classification.

Invariants:
    - Every failure maps to exactly one FailureKind; unknown failures are UNCLASSIFIED
    - classify_status has a default arm: a new kind without an explicit case yields 500
    - The kind tag (not the Python class name) is what clients see as `type`

Design Decisions:
    - Tag first, then classify: failure_kind() is the only place that looks at
      exception types, classify_status() is a pure match over the finite tag set
    - StreamShellError carries its kind as a class attribute so subclasses
      opt into a classification by declaring it
"""

from enum import Enum

from fastapi.exceptions import RequestValidationError


class FailureKind(str, Enum):
    """Finite set of failure tags exposed on the wire."""
    INVALID_ARGUMENT = "invalid argument"
    UNCLASSIFIED = "unclassified"


class StreamShellError(Exception):
    """Base exception for failures raised by streamshell itself."""

    kind: FailureKind = FailureKind.UNCLASSIFIED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(StreamShellError):
    """A caller-supplied value was rejected."""

    kind = FailureKind.INVALID_ARGUMENT

    def __init__(self, message: str, argument: str | None = None):
        super().__init__(message)
        self.argument = argument


# Built-in families treated as caller mistakes. ValueError covers pydantic's
# ValidationError as well.
_INVALID_ARGUMENT_TYPES: tuple[type[BaseException], ...] = (
    ValueError,
    RequestValidationError,
)


def failure_kind(failure: BaseException) -> FailureKind:
    """Tag a raised failure with its kind."""
    if isinstance(failure, StreamShellError):
        return failure.kind
    if isinstance(failure, _INVALID_ARGUMENT_TYPES):
        return FailureKind.INVALID_ARGUMENT
    return FailureKind.UNCLASSIFIED


def classify_status(kind: FailureKind) -> int:
    """Map a failure kind to the HTTP status written for it."""
    match kind:
        case FailureKind.INVALID_ARGUMENT:
            return 400
        case _:
            return 500


def failure_message(failure: BaseException) -> str:
    """Human-readable message of a failure, as placed in `detail`."""
    message = getattr(failure, "message", None)
    if isinstance(message, str):
        return message
    return str(failure)
