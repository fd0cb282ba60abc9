from __future__ import annotations

from bisect import bisect_right
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from patterns import DEFAULT_PATTERNS, Patterns


class LineIndex:
    """Maps offsets in a text blob to 1-based line numbers."""

    def __init__(self, content: str) -> None:
        self.content = content
        starts = [0]
        pos = content.find("\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = content.find("\n", pos + 1)
        self.starts = starts

    def line_number_for_offset(self, offset: int) -> int:
        return bisect_right(self.starts, offset)

    def line_text(self, line_no: int) -> str:
        start = self.starts[line_no - 1]
        end = self.starts[line_no] - 1 if line_no < len(self.starts) else len(self.content)
        line = self.content[start:end]
        if line.endswith("\r"):
            line = line[:-1]
        return line


def locate_annotations(
    content: str, patterns: Patterns = DEFAULT_PATTERNS
) -> Iterator[Tuple[int, str]]:
    index: Optional[LineIndex] = None
    last_line = 0
    for match in patterns.marker.finditer(content):
        if index is None:
            index = LineIndex(content)
        line_no = index.line_number_for_offset(match.start())
        if line_no == last_line:
            continue
        last_line = line_no
        yield line_no, index.line_text(line_no)


def read_source(repo: Path, rel: str, warnings: List[str]) -> Optional[str]:
    try:
        with (repo / rel).open("r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        warnings.append(f"skipping {rel}: {exc}")
        return None


def scan_file(
    repo: Path,
    rel: str,
    patterns: Patterns,
    warnings: List[str],
) -> List[Tuple[int, str]]:
    content = read_source(repo, rel, warnings)
    if content is None:
        return []
    return list(locate_annotations(content, patterns))
