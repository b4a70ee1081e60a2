"""Resource path normalization.

``normalize_path(path=None, base_path=None)`` joins ``base_path`` (default
``"/"``) and ``path`` (default empty), collapses duplicate separators and
``.``/``..`` segments, and returns ``None`` when the result is the root itself.

Guarantees
----------
- Pure string algebra (``posixpath``); the filesystem is never consulted.
- Idempotent: ``normalize_path(normalize_path(p)) == normalize_path(p)``.
- Results are absolute and never end with a separator.
- ``..`` never climbs above the root.
"""

from __future__ import annotations

import posixpath
from typing import Optional

__all__ = ["normalize_path", "join_url_path"]

SEPARATOR = "/"


def normalize_path(path: Optional[str] = None, base_path: Optional[str] = None) -> Optional[str]:
    """Return the canonical absolute form of ``base_path + path`` (``None`` for root)."""
    base = base_path or SEPARATOR
    if not base.startswith(SEPARATOR):
        base = SEPARATOR + base
    joined = posixpath.join(base, (path or "").lstrip(SEPARATOR))
    normalized = posixpath.normpath(joined)
    # posixpath keeps a leading "//" as implementation-defined; fold it.
    if normalized.startswith("//"):
        normalized = SEPARATOR + normalized.lstrip(SEPARATOR)
    if normalized == SEPARATOR:
        return None
    return normalized


def join_url_path(path: Optional[str], base_path: Optional[str]) -> str:
    """Like :func:`normalize_path` but always returns a usable URL path."""
    return normalize_path(path, base_path) or SEPARATOR
