"""
Preference nodes: a narrow view over XML elements.

One node describes one object. Its tag is the object's class name, its
attributes are the object's scalar properties (always stored as text) and its
child elements are the nodes of child objects, in order.

:class:`PrefsNode` exposes only what class callbacks and the engines need:
create a tagged node, set/get raw properties, append and iterate children.
Typed property access lives in :mod:`niftyprefs.core.props`.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator

from .errors import ErrorKind, PrefsError
from .result import Result, fail, ok
from .settings import get_logger

logger = get_logger(__name__)

# tags (class names) and attribute (property) names
NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")


class PrefsNode:
    """Wrapper around one :class:`xml.etree.ElementTree.Element`.

    Two wrappers compare equal when they wrap the same element, so nodes
    obtained by iterating children twice can be matched against each other.
    """

    __slots__ = ("_element",)

    def __init__(self, element: ET.Element) -> None:
        self._element = element

    @classmethod
    def new(cls, name: str) -> PrefsNode:
        """Create a detached node whose tag is ``name``."""
        return cls(ET.Element(name))

    # ------------------------------------------------------------ identity

    @property
    def element(self) -> ET.Element:
        return self._element

    @property
    def name(self) -> str:
        """The node's tag, i.e. the class name that restores it."""
        return str(self._element.tag)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrefsNode):
            return NotImplemented
        return self._element is other._element

    def __hash__(self) -> int:
        return id(self._element)

    def __repr__(self) -> str:
        return f"PrefsNode(<{self.name}> props={len(self._element.attrib)} children={len(self._element)})"

    # ---------------------------------------------------------- properties

    def set_prop(self, name: str, value: str) -> None:
        self._element.set(name, value)

    def get_prop(self, name: str) -> str | None:
        return self._element.get(name)

    def props(self) -> dict[str, str]:
        """Return a copy of all properties in document order."""
        return dict(self._element.attrib)

    # ------------------------------------------------------------ children

    def add_child(self, child: PrefsNode | None) -> Result[None, PrefsError]:
        """Append ``child`` after the existing children."""
        if child is None:
            return fail(logger, ErrorKind.NULL_ARGUMENT, f"<{self.name}>: cannot add None as child")
        if child == self:
            return fail(logger, ErrorKind.UNSUPPORTED, f"<{self.name}>: node cannot be its own child")
        self._element.append(child._element)
        return ok(None)

    def children(self) -> Iterator[PrefsNode]:
        for element in self._element:
            yield PrefsNode(element)

    def first_child(self) -> PrefsNode | None:
        if len(self._element) == 0:
            return None
        return PrefsNode(self._element[0])

    def child_count(self) -> int:
        return len(self._element)

    def walk(self) -> Iterator[PrefsNode]:
        """Yield this node and all descendants, depth first."""
        for element in self._element.iter():
            yield PrefsNode(element)


__all__ = ["NAME_RE", "PrefsNode"]
