"""
XML encoding and decoding of preference node trees.

This is the only module that talks to the XML library. It turns node trees
into text (buffers and files) and parses text back into a :class:`Document`,
the lifetime anchor for restored nodes.

File format
-----------
- Files start with ``<?xml version='1.0' encoding='UTF-8'?>``.
- One element per object; tag = class name, attributes = scalar properties.
- Child objects are nested elements in document order.

Writing files is atomic: the tree is written to a temporary file next to the
target and renamed over it, so a failed write never leaves a truncated file
behind.
"""

from __future__ import annotations

import copy
import os
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ErrorKind, PrefsError
from .node import PrefsNode
from .result import Result, fail, ok
from .settings import get_logger

logger = get_logger(__name__)

ENCODING = "UTF-8"


@dataclass(slots=True)
class Document:
    """A parsed XML tree owning the nodes handed out during restore.

    Attributes
    ----------
    root : PrefsNode
        The document's root node.
    source : str
        Where the text came from (a path, or ``"<buffer>"``).
    """

    root: PrefsNode
    source: str = "<buffer>"
    _members: set[int] | None = field(default=None, repr=False)

    def contains(self, node: PrefsNode) -> bool:
        """Return ``True`` if ``node`` is part of this document's tree."""
        if self._members is None:
            self._members = {id(el) for el in self.root.element.iter()}
        return id(node.element) in self._members


# --------------------------------------------------------------------------- #
# Encoding
# --------------------------------------------------------------------------- #


def _indented_copy(node: PrefsNode, indent: str) -> ET.Element:
    # indent() mutates text/tail, so format a copy and leave the caller's tree alone
    clone = copy.deepcopy(node.element)
    clone.tail = None
    tree = ET.ElementTree(clone)
    if indent:
        ET.indent(tree, space=indent)
    return tree.getroot()


def node_to_buffer(node: PrefsNode, *, indent: str = "  ") -> Result[str, PrefsError]:
    """Encode ``node`` (and its children) as indented XML text."""
    if node is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "no node to encode")
    try:
        text = ET.tostring(_indented_copy(node, indent), encoding="unicode")
    except (TypeError, ValueError) as exc:
        return fail(logger, ErrorKind.IO_ERROR, f"<{node.name}>: failed to encode XML: {exc}")
    return ok(text + "\n")


def node_to_file(node: PrefsNode, path: str | Path, *, indent: str = "  ") -> Result[Path, PrefsError]:
    """Write ``node`` as a standalone XML document to ``path`` atomically."""
    if node is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "no node to write")
    target = Path(path)
    tree = ET.ElementTree(_indented_copy(node, indent))

    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "wb") as f:
            tree.write(f, encoding=ENCODING, xml_declaration=True)
            f.write(b"\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as exc:
        return fail(logger, ErrorKind.IO_ERROR, f'Failed to save XML file "{target}": {exc}')
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)

    logger.debug('Wrote <%s> to "%s"', node.name, target)
    return ok(target)


# --------------------------------------------------------------------------- #
# Decoding
# --------------------------------------------------------------------------- #


def _parse_error(source: str, exc: ET.ParseError) -> Result[Document, PrefsError]:
    line, column = getattr(exc, "position", (0, 0))
    return fail(
        logger,
        ErrorKind.PARSE_FAILED,
        f"{source}:{line}:{column}: failed to parse XML: {exc}",
    )


def node_from_buffer(text: str | bytes) -> Result[Document, PrefsError]:
    """Parse XML ``text`` into a :class:`Document`."""
    if text is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "no buffer to parse")
    if not text.strip():
        return fail(logger, ErrorKind.PARSE_FAILED, "No root element found in XML")
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        return _parse_error("<buffer>", exc)
    return ok(Document(root=PrefsNode(root)))


def node_from_file(path: str | Path) -> Result[Document, PrefsError]:
    """Parse the XML file at ``path`` into a :class:`Document`."""
    if path is None:
        return fail(logger, ErrorKind.NULL_ARGUMENT, "no file to parse")
    source = Path(path)
    try:
        with source.open("rb") as f:
            tree = ET.parse(f)
    except ET.ParseError as exc:
        return _parse_error(str(source), exc)
    except OSError as exc:
        return fail(logger, ErrorKind.IO_ERROR, f'Failed to read XML file "{source}": {exc}')
    return ok(Document(root=PrefsNode(tree.getroot()), source=str(source)))


__all__ = [
    "Document",
    "ENCODING",
    "node_from_buffer",
    "node_from_file",
    "node_to_buffer",
    "node_to_file",
]
