"""
Restore engine: XML text or file -> node -> live object.

``from_node`` dispatches on the node's tag: the tag is the class name, so the
tree's own structure decides which ``to_object`` callback runs. Composite
callbacks iterate ``node.children()`` and call ``prefs.obj_from_node()`` for
each child, assembling the results into their own object.

Every object a callback produces is registered under its class, with the
node it came from, so a later snapshot of the same object finds it.
If the outermost restore fails, the objects registered on the way are
forgotten again: the caller never received them.

``from_buffer``/``from_file`` parse into a :class:`Document` and install it as
the context's current document once the restore has run, releasing the
previous document. Nodes a callback kept stay valid until the next parse.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.classes import ClassEntry, ToObjectFn
from ..core.codec import Document, node_from_buffer as parse_buffer, node_from_file as parse_file
from ..core.errors import ErrorKind, PrefsError
from ..core.node import PrefsNode
from ..core.result import Err, Result, fail, ok
from ..core.settings import get_logger

if TYPE_CHECKING:
    from ..core.context import Prefs

logger = get_logger(__name__)


def from_node(prefs: Prefs, node: PrefsNode, user_data: Any = None) -> Result[Any, PrefsError]:
    """Create (and register) the object described by ``node``.

    Returns ``Ok(None)`` when the callback succeeds without producing an
    object.
    """
    opened = prefs.ensure_open()
    if opened.is_err():
        return Err(opened.unwrap_err())
    if node is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "no node to restore from")

    klass = prefs.classes.find(node.name)
    if klass is None:
        return fail(logger, ErrorKind.UNKNOWN_CLASS, f'Unknown class "{node.name}"')
    if klass.to_object is None:
        return fail(logger, ErrorKind.UNSUPPORTED, f'class "{klass.name}" has no to_object callback')

    with prefs.restore_scope() as (registered, outermost):
        built = _build(prefs, klass, klass.to_object, node, user_data, registered)
        if outermost and built.is_err():
            dropped = prefs.objects.discard(registered)
            if dropped:
                logger.debug(
                    "<%s>: forgot %d object(s) restored before the failure", klass.name, dropped
                )
    return built


def _build(
    prefs: Prefs,
    klass: ClassEntry,
    to_object: ToObjectFn,
    node: PrefsNode,
    user_data: Any,
    registered: list[Any],
) -> Result[Any, PrefsError]:
    with prefs.nesting() as allowed:
        if not allowed:
            return fail(
                logger,
                ErrorKind.DEPTH_EXCEEDED,
                f'<{klass.name}>: restore nesting exceeds {prefs.settings.max_depth} levels',
            )
        result = to_object(prefs, node, user_data)

    if not isinstance(result, Result):
        return fail(
            logger,
            ErrorKind.CALLBACK_FAILED,
            f"<{klass.name}> to_object() returned {type(result).__name__}, expected a Result",
        )
    if result.is_err():
        return fail(
            logger,
            ErrorKind.CALLBACK_FAILED,
            f"<{klass.name}> to_object() failed",
            cause=result.unwrap_err(),
        )

    obj = result.unwrap()
    if obj is None:
        logger.warning(
            "<%s> to_object() returned successfully but created no object", klass.name
        )
        return ok(None)

    entry = prefs.objects.register(klass.name, obj)
    if entry.is_ok():
        entry.unwrap().node = node
        registered.append(entry.unwrap())
    else:
        logger.error('Failed to register new "%s" object: %s', klass.name, entry.unwrap_err())
    return ok(obj)


def _restore_document(
    prefs: Prefs, parsed: Result[Document, PrefsError], user_data: Any
) -> Result[Any, PrefsError]:
    if parsed.is_err():
        return Err(parsed.unwrap_err())
    doc = parsed.unwrap()
    result = from_node(prefs, doc.root, user_data)
    # install even on failure so nodes the callbacks kept stay anchored
    prefs.install_document(doc)
    return result


def from_buffer(prefs: Prefs, text: str | bytes, user_data: Any = None) -> Result[Any, PrefsError]:
    """Parse XML ``text`` and restore the object described by its root."""
    opened = prefs.ensure_open()
    if opened.is_err():
        return Err(opened.unwrap_err())
    return _restore_document(prefs, parse_buffer(text), user_data)


def from_file(prefs: Prefs, path: str | Path, user_data: Any = None) -> Result[Any, PrefsError]:
    """Parse the XML file at ``path`` and restore the object described by its root."""
    opened = prefs.ensure_open()
    if opened.is_err():
        return Err(opened.unwrap_err())
    return _restore_document(prefs, parse_file(path), user_data)


def _anchor(prefs: Prefs, parsed: Result[Document, PrefsError]) -> Result[PrefsNode, PrefsError]:
    if parsed.is_err():
        return Err(parsed.unwrap_err())
    doc = parsed.unwrap()
    prefs.install_document(doc)
    return ok(doc.root)


def node_from_buffer(prefs: Prefs, text: str | bytes) -> Result[PrefsNode, PrefsError]:
    """Parse XML ``text`` into nodes without restoring any object."""
    opened = prefs.ensure_open()
    if opened.is_err():
        return Err(opened.unwrap_err())
    return _anchor(prefs, parse_buffer(text))


def node_from_file(prefs: Prefs, path: str | Path) -> Result[PrefsNode, PrefsError]:
    """Parse the XML file at ``path`` into nodes without restoring any object."""
    opened = prefs.ensure_open()
    if opened.is_err():
        return Err(opened.unwrap_err())
    return _anchor(prefs, parse_file(path))


__all__ = ["from_buffer", "from_file", "from_node", "node_from_buffer", "node_from_file"]
