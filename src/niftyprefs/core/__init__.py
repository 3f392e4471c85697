"""Core package initializer for niftyprefs.

Holds the bookkeeping layer (settings, results, slot arena, registries,
nodes, XML codec and the ``Prefs`` context). Downstream code normally imports
the re-exports from the top-level ``niftyprefs`` package:
    from niftyprefs import Prefs, init, ok, err, prop_int_get
"""

from __future__ import annotations

__all__ = ["__doc__"]
