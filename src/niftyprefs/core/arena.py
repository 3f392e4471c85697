"""
Generation-checked slot arena backing the class and object registries.

Both registries store their entries in a growable table of slots. A slot is
either occupied (holds a value) or free. Freed slots are reused, lowest index
first, before the table grows; growth adds a fixed batch of slots at once.

Every slot carries a generation counter that is bumped when the slot is
freed. Entries are addressed by a :class:`Handle` ``(index, generation)``, so a
handle kept past ``free()`` no longer resolves, even after the slot has been
handed to a new occupant.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import ErrorKind, PrefsError
from .result import Result, fail, ok
from .settings import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Handle:
    """Stable reference to one occupant of a :class:`SlotArena` slot."""

    index: int
    generation: int


@dataclass(slots=True)
class _Slot(Generic[T]):
    generation: int = 0
    value: T | None = None


class SlotArena(Generic[T]):
    """
    Growable slot table with sentinel-free reuse and generation checks.

    Parameters
    ----------
    batch : int
        Number of slots added whenever no free slot is left.
    max_slots : int
        Upper bound on the table size; ``0`` means unlimited.
    name : str
        Label used in log messages (e.g. ``"class"``).
    """

    __slots__ = ("_slots", "_batch", "_max_slots", "_live", "_name")

    def __init__(self, *, batch: int = 64, max_slots: int = 0, name: str = "slot") -> None:
        if batch < 1:
            raise ValueError("batch must be >= 1")
        self._slots: list[_Slot[T]] = []
        self._batch = batch
        self._max_slots = max_slots
        self._live = 0
        self._name = name

    # ------------------------------------------------------------------ sizes

    @property
    def capacity(self) -> int:
        """Number of slots currently allocated (free or occupied)."""
        return len(self._slots)

    def __len__(self) -> int:
        return self._live

    # ------------------------------------------------------------- lifecycle

    def _grow(self) -> bool:
        size = len(self._slots)
        new_size = size + self._batch
        if self._max_slots:
            new_size = min(new_size, self._max_slots)
        if new_size <= size:
            return False
        try:
            self._slots.extend(_Slot() for _ in range(new_size - size))
        except MemoryError:
            return False
        logger.debug("Grew %s table from %d to %d slots", self._name, size, new_size)
        return True

    def alloc(self, value: T) -> Result[Handle, PrefsError]:
        """Store ``value`` in the first free slot, growing the table if needed."""
        if value is None:
            return fail(logger, ErrorKind.NULL_ARGUMENT, f"Cannot store None in {self._name} table")

        index = self._first_free()
        if index is None:
            start = len(self._slots)
            if not self._grow():
                return fail(
                    logger,
                    ErrorKind.SLOT_EXHAUSTED,
                    f"Failed to allocate new {self._name} slot ({start} in use)",
                )
            index = start

        slot = self._slots[index]
        slot.value = value
        self._live += 1
        return ok(Handle(index=index, generation=slot.generation))

    def free(self, handle: Handle) -> T | None:
        """Release the slot ``handle`` points at and return its former value.

        A stale handle (slot already freed or reused) is a no-op returning
        ``None``; the occupant of a reused slot is never touched.
        """
        slot = self._resolve(handle)
        if slot is None:
            logger.debug("Ignoring stale %s handle %r", self._name, handle)
            return None
        value = slot.value
        slot.value = None
        slot.generation += 1
        self._live -= 1
        return value

    # ---------------------------------------------------------------- lookup

    def get(self, handle: Handle) -> T | None:
        """Return the value behind ``handle``, or ``None`` if it is stale."""
        slot = self._resolve(handle)
        return slot.value if slot is not None else None

    def find(self, predicate: Callable[[T], bool]) -> Handle | None:
        """Return the handle of the first occupant matching ``predicate``."""
        for handle, value in self:
            if predicate(value):
                return handle
        return None

    def __iter__(self) -> Iterator[tuple[Handle, T]]:
        # snapshot so callers may free while iterating
        live = [
            (Handle(i, s.generation), s.value)
            for i, s in enumerate(self._slots)
            if s.value is not None
        ]
        for handle, value in live:
            yield handle, value

    # --------------------------------------------------------------- helpers

    def _first_free(self) -> int | None:
        for i, slot in enumerate(self._slots):
            if slot.value is None:
                return i
        return None

    def _resolve(self, handle: Handle) -> _Slot[T] | None:
        if not 0 <= handle.index < len(self._slots):
            return None
        slot = self._slots[handle.index]
        if slot.value is None or slot.generation != handle.generation:
            return None
        return slot


__all__ = ["Handle", "SlotArena"]
