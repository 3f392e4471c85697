"""Error kinds and the error payload carried by failed results.

Every public operation of the library returns a ``Result[T, PrefsError]``.
The ``kind`` field lets callers (and tests) tell "not found" apart from
"malformed", while ``cause`` keeps the inner error when a user callback
fails partway through a recursive snapshot or restore.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Categories of failure reported by the registries, engines and accessors."""

    NULL_ARGUMENT = "null_argument"
    INVALID_NAME = "invalid_name"
    DUPLICATE_CLASS = "duplicate_class"
    UNKNOWN_CLASS = "unknown_class"
    DUPLICATE_OBJECT = "duplicate_object"
    UNKNOWN_OBJECT = "unknown_object"
    SLOT_EXHAUSTED = "slot_exhausted"
    CALLBACK_FAILED = "callback_failed"
    PARSE_FAILED = "parse_failed"
    IO_ERROR = "io_error"
    MALFORMED_VALUE = "malformed_value"
    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"
    DEPTH_EXCEEDED = "depth_exceeded"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class PrefsError:
    """Immutable description of one failure.

    Attributes
    ----------
    kind : ErrorKind
        Machine-checkable category.
    message : str
        Human-readable detail, also written to the log.
    cause : PrefsError | None
        Inner error, set when a callback failure wraps the error it returned.
    """

    kind: ErrorKind
    message: str
    cause: PrefsError | None = None

    def root(self) -> PrefsError:
        """Return the innermost error of the ``cause`` chain."""
        err = self
        while err.cause is not None:
            err = err.cause
        return err

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.kind.value}: {self.message} ({self.cause})"
        return f"{self.kind.value}: {self.message}"


__all__ = ["ErrorKind", "PrefsError"]
