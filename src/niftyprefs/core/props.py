"""
Typed property accessors for preference nodes.

Class callbacks own the meaning of their scalar fields; the library only
fixes how three scalar types are written as node properties:

- strings are stored verbatim, but only characters XML 1.0 can carry
  are accepted,
- integers as canonical base-10 text (``-?[0-9]+``; a leading ``+`` is
  accepted when reading),
- booleans as exactly ``true`` or ``false``.

Property names follow the same rule as class names, since both end up as
XML names.

Getters never invent a default. A missing property is ``NOT_FOUND`` and text
that does not parse is ``MALFORMED_VALUE``, so callbacks can decide which
properties are optional.
"""

from __future__ import annotations

import logging
import re

from .errors import ErrorKind, PrefsError
from .node import NAME_RE, PrefsNode
from .result import Result, fail, ok
from .settings import get_logger

logger = get_logger(__name__)

TRUE_TOKEN = "true"
FALSE_TOKEN = "false"

_INT_RE = re.compile(r"[+-]?[0-9]+")
# anything outside the XML 1.0 Char production
_NON_XML_RE = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _check(node: PrefsNode | None, name: str | None) -> Result[None, PrefsError]:
    if node is None or name is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "node and property name are required")
    if not name:
        return fail(logger, ErrorKind.INVALID_NAME, f"<{node.name}>: property name may not be empty")
    if not NAME_RE.fullmatch(name):
        return fail(
            logger, ErrorKind.INVALID_NAME, f'<{node.name}>: "{name}" is not a valid property name'
        )
    return ok(None)


def _raw(node: PrefsNode, name: str) -> Result[str, PrefsError]:
    value = node.get_prop(name)
    if value is None:
        # absence is an expected outcome for optional properties
        return fail(
            logger,
            ErrorKind.NOT_FOUND,
            f'<{node.name}>: property "{name}" not found',
            level=logging.DEBUG,
        )
    return ok(value)


# --------------------------------------------------------------------------- #
# Strings
# --------------------------------------------------------------------------- #


def prop_string_set(node: PrefsNode, name: str, value: str) -> Result[None, PrefsError]:
    """Set property ``name`` of ``node`` to the string ``value``."""
    checked = _check(node, name)
    if checked.is_err():
        return checked
    if value is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, f'<{node.name}>: no value for "{name}"')
    text = str(value)
    bad = _NON_XML_RE.search(text)
    if bad is not None:
        return fail(
            logger,
            ErrorKind.MALFORMED_VALUE,
            f'<{node.name}>: "{name}" contains {bad.group()!r}, which XML cannot store',
        )
    node.set_prop(name, text)
    return ok(None)


def prop_string_get(node: PrefsNode, name: str) -> Result[str, PrefsError]:
    """Return the string stored under ``name``; ``NOT_FOUND`` if absent."""
    return _check(node, name).flat_map(lambda _: _raw(node, name))


# --------------------------------------------------------------------------- #
# Integers
# --------------------------------------------------------------------------- #


def prop_int_set(node: PrefsNode, name: str, value: int) -> Result[None, PrefsError]:
    """Store ``value`` as canonical base-10 text."""
    checked = _check(node, name)
    if checked.is_err():
        return checked
    if isinstance(value, bool) or not isinstance(value, int):
        return fail(
            logger,
            ErrorKind.MALFORMED_VALUE,
            f'<{node.name}>: "{name}" expects an int, got {type(value).__name__}',
        )
    node.set_prop(name, str(value))
    return ok(None)


def _parse_int(node: PrefsNode, name: str, text: str) -> Result[int, PrefsError]:
    if not _INT_RE.fullmatch(text):
        return fail(
            logger,
            ErrorKind.MALFORMED_VALUE,
            f'<{node.name}>: property "{name}" is not an integer: {text!r}',
        )
    return ok(int(text, 10))


def prop_int_get(node: PrefsNode, name: str) -> Result[int, PrefsError]:
    """Return the integer stored under ``name``."""
    return (
        _check(node, name)
        .flat_map(lambda _: _raw(node, name))
        .flat_map(lambda text: _parse_int(node, name, text))
    )


# --------------------------------------------------------------------------- #
# Booleans
# --------------------------------------------------------------------------- #


def prop_boolean_set(node: PrefsNode, name: str, value: bool) -> Result[None, PrefsError]:
    """Store ``value`` as ``true`` or ``false``."""
    checked = _check(node, name)
    if checked.is_err():
        return checked
    if not isinstance(value, bool):
        return fail(
            logger,
            ErrorKind.MALFORMED_VALUE,
            f'<{node.name}>: "{name}" expects a bool, got {type(value).__name__}',
        )
    node.set_prop(name, TRUE_TOKEN if value else FALSE_TOKEN)
    return ok(None)


def _parse_bool(node: PrefsNode, name: str, text: str) -> Result[bool, PrefsError]:
    if text == TRUE_TOKEN:
        return ok(True)
    if text == FALSE_TOKEN:
        return ok(False)
    return fail(
        logger,
        ErrorKind.MALFORMED_VALUE,
        f'<{node.name}>: property "{name}" is neither "{TRUE_TOKEN}" nor "{FALSE_TOKEN}": {text!r}',
    )


def prop_boolean_get(node: PrefsNode, name: str) -> Result[bool, PrefsError]:
    """Return the boolean stored under ``name``."""
    return (
        _check(node, name)
        .flat_map(lambda _: _raw(node, name))
        .flat_map(lambda text: _parse_bool(node, name, text))
    )


__all__ = [
    "FALSE_TOKEN",
    "TRUE_TOKEN",
    "prop_boolean_get",
    "prop_boolean_set",
    "prop_int_get",
    "prop_int_set",
    "prop_string_get",
    "prop_string_set",
]
