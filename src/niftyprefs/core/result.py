"""Typed Result container for explicit success/failure returns.

Motivation
----------
Registries, engines and property accessors never raise for caller misuse.
They log and hand back a value that is either ``Ok(value)`` or
``Err(PrefsError)``, so a caller can tell "class not registered" from
"property malformed" without catching exceptions.

This module provides:
- ``Ok(value)`` / ``Err(error)`` variants,
- combinators: ``map``, ``map_err``, ``flat_map``,
- unwrapping helpers: ``unwrap``, ``expect``, ``unwrap_err``, ``get_or``,
- ``fail()``, which logs a :class:`PrefsError` and wraps it in ``Err``.

Example
-------
>>> from niftyprefs.core.result import ok
>>> ok(" 30 ").map(str.strip).unwrap()
'30'
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, cast, overload

from .errors import ErrorKind, PrefsError

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Sum type representing either success (`Ok[T]`) or failure (`Err[E]`)."""

    # ----- Introspection -----------------------------------------------------
    def is_ok(self) -> bool:
        """Return ``True`` if this is an :class:`Ok` value."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` if this is an :class:`Err` value."""
        return isinstance(self, Err)

    def __bool__(self) -> bool:
        return self.is_ok()

    # ----- Unwraps -----------------------------------------------------------
    @overload
    def unwrap(self) -> T: ...
    @overload
    def unwrap(self, default: T) -> T: ...

    def unwrap(self, default: T | None = None) -> T:
        """Return the inner value if ``Ok``, else raise or return ``default``.

        Note that ``Ok(None)`` is a legitimate success (a restore callback may
        produce no object), so ``unwrap()`` returns ``None`` for it.
        """
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        if default is not None:
            return default
        raise RuntimeError(f"Attempted to unwrap Err: {self!r}")

    def expect(self, msg: str) -> T:
        """Return the inner value if ``Ok``, else raise ``RuntimeError(msg)``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        raise RuntimeError(f"{msg}: {cast(Err[T, E], self).error}")

    def unwrap_err(self) -> E:
        """Return the error value if ``Err``, else raise."""
        if isinstance(self, Err):
            return cast(Err[T, E], self).error
        raise RuntimeError(f"Attempted to unwrap_err on Ok: {self!r}")

    # ----- Combinators -------------------------------------------------------
    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to the success value; propagate error unchanged."""
        if isinstance(self, Ok):
            return Ok(fn(cast(Ok[T, E], self).value))
        return cast(Result[U, E], self)

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        """Apply ``fn`` to the error value; propagate success unchanged."""
        if isinstance(self, Err):
            return Err(fn(cast(Err[T, E], self).error))
        return cast(Result[T, F], self)

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain computations that already return a :class:`Result`."""
        if isinstance(self, Ok):
            return fn(cast(Ok[T, E], self).value)
        return cast(Result[U, E], self)

    def get_or(self, default: T) -> T:
        """Return the success value or a default if ``Err``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        return default

    # ----- Dunder helpers ----------------------------------------------------
    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        if isinstance(self, Ok):
            return f"Ok({cast(Ok[T, E], self).value!r})"
        if isinstance(self, Err):
            return f"Err({cast(Err[T, E], self).error!r})"
        return "Result(?)"


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Successful result wrapping a value of type ``T``."""

    value: T


@dataclass(frozen=True)
class Err(Result[T, E]):
    """Failed result wrapping an error payload of type ``E``."""

    error: E


# ----- Convenience constructors ----------------------------------------------
def ok(value: T) -> Result[T, PrefsError]:
    """Construct :class:`Ok` with better type inference at call sites."""
    return Ok(value)


def err(error: PrefsError) -> Result[T, PrefsError]:
    """Construct :class:`Err` with better type inference at call sites."""
    return Err(error)


def fail(
    logger: logging.Logger,
    kind: ErrorKind,
    message: str,
    *,
    cause: PrefsError | None = None,
    level: int = logging.ERROR,
) -> Result[T, PrefsError]:
    """Log ``message`` at ``level`` and return it as an ``Err(PrefsError)``."""
    logger.log(level, message, stacklevel=2)
    return Err(PrefsError(kind=kind, message=message, cause=cause))


__all__ = ["Err", "Ok", "Result", "err", "fail", "ok"]
