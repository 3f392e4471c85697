"""niftyprefs: snapshot and restore arbitrary objects as XML preference trees.

Declare "classes" of objects with a pair of conversion callbacks, register
live instances, then snapshot them into XML nodes (buffer/file) or restore
them back into objects, without the objects knowing about the format.
"""

from __future__ import annotations

from .core.classes import ClassEntry, FromObjectFn, PrefsClass, ToObjectFn
from .core.codec import Document
from .core.context import Prefs, init
from .core.errors import ErrorKind, PrefsError
from .core.node import PrefsNode
from .core.objects import ObjectEntry
from .core.props import (
    prop_boolean_get,
    prop_boolean_set,
    prop_int_get,
    prop_int_set,
    prop_string_get,
    prop_string_set,
)
from .core.result import Err, Ok, Result, err, ok
from .core.version import __version__, check_version

__all__ = [
    "ClassEntry",
    "Document",
    "Err",
    "ErrorKind",
    "FromObjectFn",
    "ObjectEntry",
    "Ok",
    "Prefs",
    "PrefsClass",
    "PrefsError",
    "PrefsNode",
    "Result",
    "ToObjectFn",
    "__version__",
    "check_version",
    "err",
    "init",
    "ok",
    "prop_boolean_get",
    "prop_boolean_set",
    "prop_int_get",
    "prop_int_set",
    "prop_string_get",
    "prop_string_set",
]
