"""Snapshot and restore engines for niftyprefs.

Currently exposed:

- :mod:`.snapshot`: object -> node -> XML text/file (``to_node``, ``to_buffer``, ``to_file``)
- :mod:`.restore`: XML text/file -> node -> object (``from_node``, ``from_buffer``, ``from_file``)

Both are normally driven through the ``Prefs.obj_*`` methods.
"""

from __future__ import annotations

from . import restore, snapshot

__all__ = ["restore", "snapshot"]
