"""
Class registry: class names mapped to conversion callbacks.

A *class* is a named category of caller objects (e.g. ``"person"``) sharing
one pair of callbacks:

- ``from_object(prefs, node, obj, user_data)`` fills a fresh node from a live
  object (snapshot direction),
- ``to_object(prefs, node, user_data)`` builds a live object from a node and
  returns it as ``Ok(obj)`` (restore direction).

Either callback may be absent, so a class can be snapshot-only or
restore-only. Callers may register plain callables or any object shaped like
:class:`PrefsClass`.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from .arena import Handle, SlotArena
from .errors import ErrorKind, PrefsError
from .node import NAME_RE
from .result import Err, Result, fail, ok
from .settings import get_logger

if TYPE_CHECKING:
    from .context import Prefs
    from .node import PrefsNode

logger = get_logger(__name__)


class FromObjectFn(Protocol):
    def __call__(
        self, prefs: Prefs, node: PrefsNode, obj: Any, user_data: Any
    ) -> Result[None, PrefsError]: ...


class ToObjectFn(Protocol):
    def __call__(self, prefs: Prefs, node: PrefsNode, user_data: Any) -> Result[Any, PrefsError]: ...


class PrefsClass:
    """Base for class handlers registered with ``Prefs.class_register_handler``.

    Subclasses override one or both methods. A method left as inherited is
    treated as absent, exactly like passing ``None`` to ``class_register``.
    """

    def to_object(self, prefs: Prefs, node: PrefsNode, user_data: Any) -> Result[Any, PrefsError]:
        raise NotImplementedError

    def from_object(
        self, prefs: Prefs, node: PrefsNode, obj: Any, user_data: Any
    ) -> Result[None, PrefsError]:
        raise NotImplementedError


def _overrides(handler: object, method: str) -> bool:
    impl = getattr(type(handler), method, None)
    return impl is not None and impl is not getattr(PrefsClass, method)


@dataclass(slots=True, eq=False)
class ClassEntry:
    """One registered class.

    Attributes
    ----------
    name : str
        Unique class name; also the tag of every node of this class.
    to_object : ToObjectFn | None
        Restore callback, or ``None`` for snapshot-only classes.
    from_object : FromObjectFn | None
        Snapshot callback, or ``None`` for restore-only classes.
    handle : Handle | None
        Slot of this entry inside the registry (set on registration).
    """

    name: str
    to_object: ToObjectFn | None = None
    from_object: FromObjectFn | None = None
    handle: Handle | None = field(default=None, repr=False)


class ClassRegistry:
    """Registry of :class:`ClassEntry` values keyed by name."""

    def __init__(self, *, max_name: int = 64, batch: int = 64, max_slots: int = 0) -> None:
        self.max_name = max_name
        self._arena: SlotArena[ClassEntry] = SlotArena(
            batch=batch, max_slots=max_slots, name="class"
        )

    # ------------------------------------------------------------ validation

    def _check_name(self, name: str | None) -> Result[str, PrefsError]:
        if name is None:
            return fail(logger, ErrorKind.NULL_ARGUMENT, "class name is required")
        if not isinstance(name, str) or not name:
            return fail(logger, ErrorKind.INVALID_NAME, "class name may not be empty")
        if len(name) > self.max_name:
            return fail(
                logger,
                ErrorKind.INVALID_NAME,
                f'class name "{name[:16]}..." exceeds {self.max_name} characters',
            )
        if not NAME_RE.fullmatch(name):
            return fail(logger, ErrorKind.INVALID_NAME, f'class name "{name}" is not a valid tag name')
        return ok(name)

    # ---------------------------------------------------------- registration

    def register(
        self,
        name: str,
        to_object: ToObjectFn | None = None,
        from_object: FromObjectFn | None = None,
    ) -> Result[ClassEntry, PrefsError]:
        """Register ``name`` with its (possibly absent) callbacks."""
        checked = self._check_name(name)
        if checked.is_err():
            return Err(checked.unwrap_err())

        if self.find(name) is not None:
            return fail(logger, ErrorKind.DUPLICATE_CLASS, f'class named "{name}" already registered')

        entry = ClassEntry(name=name, to_object=to_object, from_object=from_object)
        slot = self._arena.alloc(entry)
        if slot.is_err():
            return fail(
                logger,
                ErrorKind.SLOT_EXHAUSTED,
                f'Failed to allocate slot for class "{name}"',
                cause=slot.unwrap_err(),
            )
        entry.handle = slot.unwrap()
        logger.debug('Registered class "%s"', name)
        return ok(entry)

    def register_handler(self, name: str, handler: PrefsClass | object) -> Result[ClassEntry, PrefsError]:
        """Register ``handler``'s ``to_object``/``from_object`` methods under ``name``."""
        if handler is None:
            return fail(logger, ErrorKind.NULL_ARGUMENT, f'no handler given for class "{name}"')
        to_object = handler.to_object if _overrides(handler, "to_object") else None  # type: ignore[attr-defined]
        from_object = handler.from_object if _overrides(handler, "from_object") else None  # type: ignore[attr-defined]
        return self.register(name, to_object, from_object)

    def unregister(self, name: str) -> ClassEntry | None:
        """Free the slot of class ``name`` and return the removed entry.

        Unknown names are logged and ignored; the caller cannot always check
        existence first.
        """
        entry = self.find(name)
        if entry is None or entry.handle is None:
            logger.error('tried to unregister class "%s" that is not registered.', name)
            return None
        self._arena.free(entry.handle)
        logger.debug('Unregistered class "%s"', name)
        return entry

    # ---------------------------------------------------------------- lookup

    def find(self, name: str | None) -> ClassEntry | None:
        """Return the entry for ``name`` or ``None``; absence is not an error."""
        if not name:
            return None
        handle = self._arena.find(lambda entry: entry.name == name)
        if handle is None:
            logger.debug('Class "%s" not found', name)
            return None
        return self._arena.get(handle)

    def lookup(self, name: str | None) -> Result[ClassEntry, PrefsError]:
        """Like :meth:`find`, but report malformed names and misses as errors."""
        checked = self._check_name(name)
        if checked.is_err():
            return Err(checked.unwrap_err())
        entry = self.find(name)
        if entry is None:
            return fail(logger, ErrorKind.UNKNOWN_CLASS, f'Unknown class "{name}"')
        return ok(entry)

    def get(self, handle: Handle) -> ClassEntry | None:
        return self._arena.get(handle)

    def names(self) -> list[str]:
        return [entry.name for _, entry in self._arena]

    def __iter__(self) -> Iterator[ClassEntry]:
        for _, entry in self._arena:
            yield entry

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(name) is not None

    def __len__(self) -> int:
        return len(self._arena)

    @property
    def capacity(self) -> int:
        return self._arena.capacity


__all__ = ["ClassEntry", "ClassRegistry", "FromObjectFn", "PrefsClass", "ToObjectFn"]
