"""Filesystem helpers for report artifacts.

Rules:
- write artifacts under the output directory (``build/`` by default)
- print only small summaries/previews (never dump the whole report to stdout)
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

DEFAULT_OUT_DIR = Path("build")


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_text(path: Path, text: str) -> Path:
    ensure_dir(path.parent)
    if path.exists():
        path.unlink()
    path.write_text(text, encoding="utf-8")
    return path


def write_lines(path: Path, lines: Iterable[str]) -> Path:
    items: List[str] = list(lines)
    text = "\n".join(items) + ("\n" if items else "")
    return write_text(path, text)


def safe_preview_text(text: str, max_bytes: int = 512) -> str:
    data = text.encode("utf-8", errors="replace")
    if len(data) <= max_bytes:
        return text
    cut = data[:max_bytes]
    return cut.decode("utf-8", errors="ignore") + "..."
