from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence


REPORT_VERSION = 1

HYPERLINK = "hyperlink"
ISSUE = "issue"
EMPHASIS = "emphasis"
TEXT = "text"


def now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass(frozen=True)
class Tracker:
    host: str = "github.com"
    repo: str = "rust-lang/rust"
    branch: str = "master"
    api_url: str = "https://api.github.com"

    def issue_url(self, issue: int | str) -> str:
        return f"https://{self.host}/{self.repo}/issues/{issue}"

    def blob_url(self, path: str, line: int) -> str:
        return f"https://{self.host}/{self.repo}/blob/{self.branch}/{path}#L{line}"

    def api_issue_url(self, issue: int) -> str:
        return f"{self.api_url.rstrip('/')}/repos/{self.repo}/issues/{issue}"


DEFAULT_TRACKER = Tracker()


@dataclass(frozen=True)
class Occurrence:
    path: str
    line: int


@dataclass
class Entry:
    key: str
    occurrences: List[Occurrence] = field(default_factory=list)


@dataclass(frozen=True)
class ReferenceSpan:
    start: int
    end: int
    kind: str


@dataclass(frozen=True)
class EmphasisSpan:
    start: int
    end: int


@dataclass(frozen=True)
class Segment:
    """One rendering unit of an annotation's text.

    ``start``/``end`` are ``str`` indices (code points) into the annotation
    text, not UTF-8 byte offsets; they differ on non-ASCII keys. The same
    holds for ``ReferenceSpan`` and ``EmphasisSpan``. ``href`` is set for
    hyperlink and issue segments; ``label`` is the text to display (for
    hyperlinks it differs from the raw URL).
    """

    kind: str
    start: int
    end: int
    text: str
    href: Optional[str] = None
    label: Optional[str] = None

    @property
    def display(self) -> str:
        return self.label if self.label is not None else self.text

    @property
    def issue_id(self) -> Optional[int]:
        if self.kind != ISSUE:
            return None
        return int(self.text)


@dataclass
class ReportRow:
    key: str
    occurrences: List[Occurrence]
    segments: List[Segment]
    issue_states: Dict[int, str] = field(default_factory=dict)


def new_report(
    repo: Path,
    markers: Sequence[str],
    *,
    tracker_repo: str,
    file_count: int,
) -> Dict[str, Any]:
    return {
        "meta": {
            "version": REPORT_VERSION,
            "generated_at": now_iso(),
            "repo": repo.as_posix(),
            "markers": list(markers),
            "tracker": tracker_repo,
            "file_count": file_count,
        },
        "rows": [],
    }


def row_to_dict(row: ReportRow) -> Dict[str, Any]:
    return {
        "key": row.key,
        "occurrences": [{"path": occ.path, "line": occ.line} for occ in row.occurrences],
        "segments": [
            {
                "kind": seg.kind,
                "start": seg.start,
                "end": seg.end,
                "text": seg.text,
                **({"href": seg.href} if seg.href else {}),
                **({"label": seg.label} if seg.label is not None else {}),
            }
            for seg in row.segments
        ],
        "issues": {str(issue): state for issue, state in row.issue_states.items()},
    }
