"""Pattern constants for annotation scanning and reference extraction.

Issue numbers (``ISSUE_RE``): a run of ASCII digits, at least three long,
with a non-zero leading digit. The run must not touch a word character on
either side and must not be followed by ``%``. Single and double digit
numbers never count, and no leading ``#`` is required (``FIXME 1232`` is a
reference). ``128bit``, ``E0599``, ``50%`` and ``foo_123`` are not.

Hyperlinks (``HYPERLINK_RE``): scheme-qualified URLs (``scheme://...``) and
bare e-mail addresses. Matches are post-trimmed by ``references.trim_url``.

Emphasis (``Patterns.emphasis``): ``MARKER(capture)`` where the capture is
one or more characters other than ``)``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Pattern, Tuple

DEFAULT_MARKERS = ("FIXME", "HACK")


class ConfigError(ValueError):
    """Invalid configuration detected before scanning starts."""


ISSUE_RE = re.compile(r"(?<!\w)[1-9][0-9]{2,}(?![\w%])")

HYPERLINK_RE = re.compile(
    r"(?P<url>\b[A-Za-z][A-Za-z0-9+.\-]*://[^\s<>\"'`]+)"
    r"|(?P<email>\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)*\.[A-Za-z]{2,})"
)

_MARKER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")


@dataclass(frozen=True)
class Patterns:
    markers: Tuple[str, ...]
    marker: Pattern[str]
    emphasis: Pattern[str]


def normalize_markers(markers: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for raw in markers:
        if not isinstance(raw, str):
            raise ConfigError(f"marker must be a string, got {type(raw).__name__}")
        marker = raw.strip()
        if not marker:
            raise ConfigError("marker must not be empty")
        if not _MARKER_RE.fullmatch(marker):
            raise ConfigError(f"invalid marker {raw!r}: expected an identifier-like keyword")
        if marker not in seen:
            seen.append(marker)
    if not seen:
        raise ConfigError("at least one marker is required")
    return tuple(seen)


def compile_patterns(markers: Iterable[str] = DEFAULT_MARKERS) -> Patterns:
    names = normalize_markers(markers)
    alternation = "|".join(re.escape(name) for name in names)
    try:
        marker = re.compile(alternation)
        emphasis = re.compile(rf"(?:{alternation})\(([^)]+)\)")
    except re.error as exc:
        raise ConfigError(f"invalid marker pattern: {exc}") from exc
    return Patterns(markers=names, marker=marker, emphasis=emphasis)


DEFAULT_PATTERNS = compile_patterns(DEFAULT_MARKERS)
