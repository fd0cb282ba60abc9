from __future__ import annotations

from .constants import TRIM_CHARS


def normalize_key(line: str) -> str:
    """Grouping key for an annotation line: both ends stripped of ``/* :-.^,``."""
    return line.strip(TRIM_CHARS)
