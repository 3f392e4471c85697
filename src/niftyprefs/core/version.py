"""Library version and the caller-side compatibility check.

Callers built against one release of the library call
:func:`check_version` at startup with the version they were written for and
abort their own startup if it returns ``False``::

    if not niftyprefs.check_version("0.1"):
        sys.exit(1)

Compatibility rule: same major version, and the installed library is at least
the required version.
"""

from __future__ import annotations

import re

from .settings import get_logger

__version__ = "0.1.0"

logger = get_logger(__name__)

_VERSION_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_version(text: str) -> tuple[int, int, int] | None:
    """Parse ``MAJOR[.MINOR[.MICRO]]`` into a tuple, ignoring any suffix."""
    match = _VERSION_RE.match(text.strip()) if text else None
    if match is None:
        return None
    major, minor, micro = (int(part) if part else 0 for part in match.groups())
    return major, minor, micro


def check_version(required: str, installed: str = __version__) -> bool:
    """Return ``True`` if ``installed`` satisfies a caller built for ``required``."""
    want = parse_version(required)
    have = parse_version(installed)
    if want is None or have is None:
        logger.error('Cannot compare versions "%s" and "%s"', required, installed)
        return False
    if want[0] != have[0] or have < want:
        logger.error(
            "niftyprefs version mismatch: caller requires %s, library is %s", required, installed
        )
        return False
    return True


__all__ = ["__version__", "check_version", "parse_version"]
