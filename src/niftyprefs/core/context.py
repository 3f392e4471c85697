"""
The ``Prefs`` context: one explicit owner for all library state.

A context owns

- a :class:`ClassRegistry` (class name -> callbacks),
- an :class:`ObjectRegistry` (live object -> class + node),
- at most one current :class:`Document`, the anchor keeping nodes handed out
  by the last restore alive.

There is no process-wide state: every context is independent, so tests and
callers can run several side by side. A context is created by
:func:`init` (or ``Prefs()``) and torn down by :meth:`Prefs.exit`, which
forgets every class and object still registered and warns about them; stale
registrations at exit are a caller bug, not a fatal error.

Usage
-----
>>> from niftyprefs import init, ok
>>> with init() as prefs:
...     _ = prefs.class_register("person", from_object=lambda p, n, o, u: ok(None))
...     prefs.obj_to_buffer("person", object()).unwrap()
'<person />\\n'

Thread safety: none. Concurrent use of one context needs external locking.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from types import TracebackType
from typing import Any

from ..engine import restore, snapshot
from .classes import ClassEntry, ClassRegistry, FromObjectFn, PrefsClass, ToObjectFn
from .codec import Document
from .errors import ErrorKind, PrefsError
from .node import PrefsNode
from .objects import ObjectEntry, ObjectRegistry
from .result import Result, fail, ok
from .settings import Settings, get_logger, load_settings
from .version import __version__

logger = get_logger(__name__)


class Prefs:
    """Context holding registered classes, registered objects and the current document."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings: Settings = settings if settings is not None else load_settings()
        self.classes = ClassRegistry(
            max_name=self.settings.max_classname,
            batch=self.settings.slot_batch,
            max_slots=self.settings.max_slots,
        )
        self.objects = ObjectRegistry(
            self.classes,
            batch=self.settings.slot_batch,
            max_slots=self.settings.max_slots,
        )
        self._document: Document | None = None
        self._depth = 0
        # work recorded by the outermost snapshot/restore in progress, by kind
        self._pending: dict[str, list[Any]] = {}
        self._closed = False
        logger.info("niftyprefs - v%s", __version__)

    # ------------------------------------------------------------- lifecycle

    @property
    def closed(self) -> bool:
        return self._closed

    def ensure_open(self) -> Result[None, PrefsError]:
        if self._closed:
            return fail(logger, ErrorKind.CLOSED, "Prefs context used after exit()")
        return ok(None)

    def exit(self) -> None:
        """Release every class, object and the current document.

        Calling ``exit()`` twice is harmless.
        """
        if self._closed:
            return

        stale_objects = len(self.objects)
        for entry in list(self.classes):
            orphans = self.objects.forget_class(entry.handle) if entry.handle else 0
            logger.warning(
                'Class "%s" still registered at exit (%d object(s))', entry.name, orphans
            )
            self.classes.unregister(entry.name)
        if stale_objects:
            logger.warning("Deallocated %d stale object(s) at exit", stale_objects)

        self._document = None
        self._closed = True

    def __enter__(self) -> Prefs:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.exit()

    @contextmanager
    def nesting(self) -> Iterator[bool]:
        """Track one level of snapshot/restore recursion.

        Yields ``False`` when the configured ``max_depth`` is exceeded.
        """
        self._depth += 1
        try:
            yield self._depth <= self.settings.max_depth
        finally:
            self._depth -= 1

    @property
    def depth(self) -> int:
        return self._depth

    @contextmanager
    def _scope(self, kind: str) -> Iterator[tuple[list[Any], bool]]:
        pending = self._pending.get(kind)
        if pending is not None:
            yield pending, False
            return
        pending = self._pending[kind] = []
        try:
            yield pending, True
        finally:
            del self._pending[kind]

    def snapshot_scope(self) -> AbstractContextManager[tuple[list[Any], bool]]:
        """Share one record list across a snapshot and its nested child snapshots.

        Yields ``(records, outermost)``. Only the outermost call applies the
        records, once the whole tree has been built.
        """
        return self._scope("snapshot")

    def restore_scope(self) -> AbstractContextManager[tuple[list[Any], bool]]:
        """Share one list of registered entries across a restore and its children.

        Yields ``(entries, outermost)``. When the outermost restore fails the
        entries are discarded, since the caller never received those objects.
        """
        return self._scope("restore")

    # -------------------------------------------------------------- document

    @property
    def document(self) -> Document | None:
        """The document anchoring nodes from the last parse, if any."""
        return self._document

    def install_document(self, doc: Document) -> None:
        """Make ``doc`` the current document, releasing the previous one."""
        old = self._document
        self._document = doc
        if old is None or old is doc:
            return
        cleared = self.objects.clear_nodes(old.contains)
        if cleared:
            logger.debug("Released %d node reference(s) into %s", cleared, old.source)

    # --------------------------------------------------------------- classes

    def class_register(
        self,
        name: str,
        to_object: ToObjectFn | None = None,
        from_object: FromObjectFn | None = None,
    ) -> Result[ClassEntry, PrefsError]:
        """Register class ``name`` with its (possibly absent) callbacks."""
        if self._closed:
            return fail(logger, ErrorKind.CLOSED, f'cannot register class "{name}" after exit()')
        return self.classes.register(name, to_object, from_object)

    def class_register_handler(
        self, name: str, handler: PrefsClass | object
    ) -> Result[ClassEntry, PrefsError]:
        """Register a :class:`PrefsClass`-shaped handler object as class ``name``."""
        if self._closed:
            return fail(logger, ErrorKind.CLOSED, f'cannot register class "{name}" after exit()')
        return self.classes.register_handler(name, handler)

    def class_unregister(self, name: str) -> int:
        """Unregister class ``name`` and forget all of its objects.

        Returns the number of objects that were still registered under the
        class. Unknown classes are logged and yield ``0``.
        """
        if self._closed:
            logger.error('cannot unregister class "%s" after exit()', name)
            return 0
        entry = self.classes.find(name)
        if entry is None or entry.handle is None:
            logger.error('tried to unregister class "%s" that is not registered.', name)
            return 0
        orphans = self.objects.forget_class(entry.handle)
        self.classes.unregister(name)
        if orphans:
            logger.debug(
                'Deallocated %d stale object(s) when deallocating class "%s"', orphans, name
            )
        return orphans

    def class_find(self, name: str) -> ClassEntry | None:
        return self.classes.find(name)

    # --------------------------------------------------------------- objects

    def obj_register(self, class_name: str, obj: Any) -> Result[ObjectEntry, PrefsError]:
        """Register ``obj`` as an instance of ``class_name``."""
        if self._closed:
            return fail(logger, ErrorKind.CLOSED, f'cannot register "{class_name}" object after exit()')
        return self.objects.register(class_name, obj)

    def obj_unregister(self, class_name: str, obj: Any) -> bool:
        """Forget ``obj``; returns ``False`` (after logging) if it was not registered."""
        if self._closed:
            logger.error('cannot unregister "%s" object after exit()', class_name)
            return False
        return self.objects.unregister(class_name, obj)

    def obj_find(self, obj: Any) -> ObjectEntry | None:
        return self.objects.find(obj)

    # -------------------------------------------------------------- snapshot

    def obj_to_node(
        self, class_name: str, obj: Any, user_data: Any = None
    ) -> Result[PrefsNode, PrefsError]:
        """Snapshot ``obj`` into a new node (see :mod:`niftyprefs.engine.snapshot`)."""
        return snapshot.to_node(self, class_name, obj, user_data)

    def obj_to_buffer(self, class_name: str, obj: Any, user_data: Any = None) -> Result[str, PrefsError]:
        """Snapshot ``obj`` and encode it as XML text."""
        return snapshot.to_buffer(self, class_name, obj, user_data)

    def obj_to_file(
        self, class_name: str, obj: Any, path: str | Path, user_data: Any = None
    ) -> Result[Path, PrefsError]:
        """Snapshot ``obj`` and write it to ``path`` atomically."""
        return snapshot.to_file(self, class_name, obj, path, user_data)

    # --------------------------------------------------------------- restore

    def obj_from_node(self, node: PrefsNode, user_data: Any = None) -> Result[Any, PrefsError]:
        """Restore an object from ``node`` (see :mod:`niftyprefs.engine.restore`)."""
        return restore.from_node(self, node, user_data)

    def obj_from_buffer(self, text: str | bytes, user_data: Any = None) -> Result[Any, PrefsError]:
        """Parse XML ``text`` and restore the object its root node describes."""
        return restore.from_buffer(self, text, user_data)

    def obj_from_file(self, path: str | Path, user_data: Any = None) -> Result[Any, PrefsError]:
        """Parse the XML file at ``path`` and restore its root object."""
        return restore.from_file(self, path, user_data)

    def node_from_buffer(self, text: str | bytes) -> Result[PrefsNode, PrefsError]:
        """Parse XML ``text`` without restoring; the document becomes current."""
        return restore.node_from_buffer(self, text)

    def node_from_file(self, path: str | Path) -> Result[PrefsNode, PrefsError]:
        """Parse the XML file at ``path`` without restoring."""
        return restore.node_from_file(self, path)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Prefs({state}, classes={len(self.classes)}, objects={len(self.objects)})"


def init(settings: Settings | None = None) -> Prefs:
    """Create a new, empty :class:`Prefs` context."""
    return Prefs(settings)


__all__ = ["Prefs", "init"]
