"""
Object registry: live objects mapped to their class and last node.

Every object the library tracks (registered by the caller, or produced by a
restore callback) gets one :class:`ObjectEntry`. An object is identified by
identity (``is``), not equality, and may be registered under one class at a
time across the whole context.

The registry never owns the objects' state: unregistering forgets the entry
and leaves the object itself alone.

Slot reuse
----------
Entries live in a :class:`SlotArena`. Freeing an entry clears its object,
class and node together and bumps the slot generation, so a reused slot
always starts with ``node=None`` and old handles stop resolving.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .arena import Handle, SlotArena
from .classes import ClassRegistry
from .errors import ErrorKind, PrefsError
from .node import PrefsNode
from .result import Result, fail, ok
from .settings import get_logger

logger = get_logger(__name__)


@dataclass(slots=True, eq=False)
class ObjectEntry:
    """Bookkeeping for one registered object.

    Attributes
    ----------
    object : Any
        The caller's object (identity is what matters).
    klass : Handle
        Handle of the owning :class:`~niftyprefs.core.classes.ClassEntry`.
    class_name : str
        Name of the owning class, kept for log messages.
    node : PrefsNode | None
        Node last produced (snapshot) or consumed (restore) for this object.
    handle : Handle | None
        This entry's own slot.
    """

    object: Any
    klass: Handle
    class_name: str
    node: PrefsNode | None = None
    handle: Handle | None = field(default=None, repr=False)

    def clear(self) -> None:
        self.object = None
        self.node = None
        self.handle = None


class ObjectRegistry:
    """Registry of :class:`ObjectEntry` values, unique by object identity."""

    def __init__(self, classes: ClassRegistry, *, batch: int = 64, max_slots: int = 0) -> None:
        self._classes = classes
        self._arena: SlotArena[ObjectEntry] = SlotArena(
            batch=batch, max_slots=max_slots, name="object"
        )
        # id(obj) -> handle; kept in lock-step with the arena so ids stay unique
        self._index: dict[int, Handle] = {}

    # ---------------------------------------------------------- registration

    def register(self, class_name: str, obj: Any) -> Result[ObjectEntry, PrefsError]:
        """Start tracking ``obj`` as an instance of ``class_name``."""
        if obj is None:
            return fail(logger, ErrorKind.NULL_ARGUMENT, f'cannot register None as "{class_name}" object')

        klass = self._classes.find(class_name)
        if klass is None or klass.handle is None:
            return fail(logger, ErrorKind.UNKNOWN_CLASS, f'Unknown class "{class_name}"')

        existing = self.find(obj)
        if existing is not None:
            return fail(
                logger,
                ErrorKind.DUPLICATE_OBJECT,
                f'object {_describe(obj)} already registered as "{existing.class_name}"',
            )

        entry = ObjectEntry(object=obj, klass=klass.handle, class_name=klass.name)
        slot = self._arena.alloc(entry)
        if slot.is_err():
            return fail(
                logger,
                ErrorKind.SLOT_EXHAUSTED,
                f'Failed to allocate slot for new "{class_name}" object',
                cause=slot.unwrap_err(),
            )
        entry.handle = slot.unwrap()
        self._index[id(obj)] = entry.handle
        return ok(entry)

    def unregister(self, class_name: str, obj: Any) -> bool:
        """Forget ``obj``; unknown objects are logged and ignored."""
        entry = self.find(obj)
        if entry is None:
            logger.error('Object %s not found in class "%s"', _describe(obj), class_name)
            return False
        if entry.class_name != class_name:
            logger.error(
                'Object %s is registered as "%s", not "%s"',
                _describe(obj),
                entry.class_name,
                class_name,
            )
            return False
        self._release(entry)
        return True

    def forget_class(self, klass: Handle) -> int:
        """Free every entry owned by class ``klass``; return how many were orphaned."""
        count = 0
        for _, entry in self._arena:
            if entry.klass == klass:
                self._release(entry)
                count += 1
        return count

    def clear_nodes(self, predicate: Callable[[PrefsNode], bool]) -> int:
        """Drop node references matching ``predicate``; return how many were cleared."""
        count = 0
        for _, entry in self._arena:
            if entry.node is not None and predicate(entry.node):
                entry.node = None
                count += 1
        return count

    def discard(self, entries: Iterable[ObjectEntry]) -> int:
        """Forget every still-registered entry in ``entries``; return how many."""
        count = 0
        for entry in entries:
            if entry.handle is not None and self._arena.get(entry.handle) is entry:
                self._release(entry)
                count += 1
        return count

    def _release(self, entry: ObjectEntry) -> None:
        if entry.handle is None:
            return
        self._index.pop(id(entry.object), None)
        self._arena.free(entry.handle)
        entry.clear()

    # ---------------------------------------------------------------- lookup

    def find(self, obj: Any) -> ObjectEntry | None:
        """Return the entry tracking ``obj`` (by identity), or ``None``."""
        if obj is None:
            return None
        handle = self._index.get(id(obj))
        if handle is None:
            return None
        entry = self._arena.get(handle)
        if entry is None or entry.object is not obj:
            return None
        return entry

    def get(self, handle: Handle) -> ObjectEntry | None:
        return self._arena.get(handle)

    def of_class(self, klass: Handle) -> list[ObjectEntry]:
        return [entry for _, entry in self._arena if entry.klass == klass]

    def __iter__(self) -> Iterator[ObjectEntry]:
        for _, entry in self._arena:
            yield entry

    def __len__(self) -> int:
        return len(self._arena)

    @property
    def capacity(self) -> int:
        return self._arena.capacity


def _describe(obj: Any) -> str:
    return f"<{type(obj).__name__} at {id(obj):#x}>"


__all__ = ["ObjectEntry", "ObjectRegistry"]
