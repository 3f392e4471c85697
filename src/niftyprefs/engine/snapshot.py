"""
Snapshot engine: live object -> node -> XML text or file.

``to_node`` creates an empty node tagged with the class name and hands it to
the class's ``from_object`` callback. Composite callbacks call
``prefs.obj_to_node()`` for every child object and append the returned nodes,
so the walk recurses through this public entry point, never through private
helpers.

A failing callback aborts the whole snapshot: the partially filled node is
dropped and the caller gets ``CALLBACK_FAILED`` with the callback's own error
as ``cause``.

Registered objects get their ``node`` updated only when the outermost
snapshot succeeds, so a failed parent never leaves children pointing into a
dropped tree.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.classes import ClassEntry, FromObjectFn
from ..core.codec import node_to_buffer, node_to_file
from ..core.errors import ErrorKind, PrefsError
from ..core.node import PrefsNode
from ..core.objects import ObjectEntry
from ..core.result import Err, Result, fail, ok
from ..core.settings import get_logger

if TYPE_CHECKING:
    from ..core.context import Prefs

logger = get_logger(__name__)


def to_node(
    prefs: Prefs, class_name: str, obj: Any, user_data: Any = None
) -> Result[PrefsNode, PrefsError]:
    """Create a node describing ``obj`` using the callbacks of ``class_name``."""
    opened = prefs.ensure_open()
    if opened.is_err():
        return Err(opened.unwrap_err())
    if obj is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, f'no "{class_name}" object to snapshot')

    lookup = prefs.classes.lookup(class_name)
    if lookup.is_err():
        return Err(lookup.unwrap_err())
    klass = lookup.unwrap()
    if klass.from_object is None:
        return fail(
            logger,
            ErrorKind.UNSUPPORTED,
            f'class "{klass.name}" has no from_object callback',
        )

    with prefs.snapshot_scope() as (records, outermost):
        built = _build(prefs, klass, klass.from_object, obj, user_data, records)
        if outermost and built.is_ok():
            _apply(records)
    return built


def _build(
    prefs: Prefs,
    klass: ClassEntry,
    from_object: FromObjectFn,
    obj: Any,
    user_data: Any,
    records: list[Any],
) -> Result[PrefsNode, PrefsError]:
    with prefs.nesting() as allowed:
        if not allowed:
            return fail(
                logger,
                ErrorKind.DEPTH_EXCEEDED,
                f'<{klass.name}>: snapshot nesting exceeds {prefs.settings.max_depth} levels',
            )
        node = PrefsNode.new(klass.name)
        result = from_object(prefs, node, obj, user_data)

    if not isinstance(result, Result):
        return fail(
            logger,
            ErrorKind.CALLBACK_FAILED,
            f"<{klass.name}> from_object() returned {type(result).__name__}, expected a Result",
        )
    if result.is_err():
        return fail(
            logger,
            ErrorKind.CALLBACK_FAILED,
            f"<{klass.name}> from_object() failed",
            cause=result.unwrap_err(),
        )

    entry = prefs.objects.find(obj)
    if entry is not None:
        if entry.klass == klass.handle:
            records.append((entry, node))
        else:
            logger.warning(
                'object snapshot as "%s" is registered as "%s"', klass.name, entry.class_name
            )
    return ok(node)


def _apply(records: list[tuple[ObjectEntry, PrefsNode]]) -> None:
    for entry, node in records:
        # skip entries unregistered while the snapshot ran
        if entry.handle is not None:
            entry.node = node


def to_buffer(
    prefs: Prefs, class_name: str, obj: Any, user_data: Any = None
) -> Result[str, PrefsError]:
    """Snapshot ``obj`` and encode the resulting tree as XML text."""
    indent = prefs.settings.xml_indent
    return to_node(prefs, class_name, obj, user_data).flat_map(
        lambda node: node_to_buffer(node, indent=indent)
    )


def to_file(
    prefs: Prefs, class_name: str, obj: Any, path: str | Path, user_data: Any = None
) -> Result[Path, PrefsError]:
    """Snapshot ``obj`` and write the resulting tree to ``path``.

    The file is replaced atomically; on failure any previous file at ``path``
    is left as it was and ``IO_ERROR`` is returned.
    """
    if path is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "no file name given")
    indent = prefs.settings.xml_indent
    return to_node(prefs, class_name, obj, user_data).flat_map(
        lambda node: node_to_file(node, path, indent=indent)
    )


__all__ = ["to_buffer", "to_file", "to_node"]
