from __future__ import annotations

import html
import json
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from model import (
    EMPHASIS,
    HYPERLINK,
    ISSUE,
    Entry,
    ReportRow,
    Segment,
    Tracker,
    new_report,
    row_to_dict,
)
from patterns import DEFAULT_PATTERNS, Patterns
from references import extract_segments


class Resolver(Protocol):
    def resolve(self, issue_id: int) -> str:
        ...


SORT_SCRIPT = """
const cellValue = (tr, idx) => tr.children[idx].innerText || tr.children[idx].textContent;
const compareRows = (idx, asc) => (a, b) => {
  const v1 = cellValue(asc ? a : b, idx);
  const v2 = cellValue(asc ? b : a, idx);
  if (v1 !== '' && v2 !== '' && !isNaN(v1) && !isNaN(v2)) {
    return v1 - v2;
  }
  return v1.toString().localeCompare(v2);
};
document.querySelectorAll('th').forEach(th => th.addEventListener('click', () => {
  const table = th.closest('table');
  th.asc = !th.asc;
  Array.from(table.querySelectorAll('tr:nth-child(n+2)'))
    .sort(compareRows(Array.from(th.parentNode.children).indexOf(th), th.asc))
    .forEach(tr => table.appendChild(tr));
}));
"""

TABLE_STYLE = """table, th, td {
  border: 1px solid black;
}
th {
  cursor: pointer;
}"""


def build_rows(
    entries: Iterable[Entry],
    *,
    patterns: Patterns = DEFAULT_PATTERNS,
    tracker: Optional[Tracker] = None,
    resolver: Optional[Resolver] = None,
) -> List[ReportRow]:
    """Attach reference segments and issue states to each entry, in key order.

    Issue ids are handed to the resolver one at a time in the order they are
    first met while walking the rows.
    """
    tracker = tracker or Tracker()
    rows: List[ReportRow] = []
    for entry in entries:
        segments = extract_segments(entry.key, patterns=patterns, tracker=tracker)
        states: Dict[int, str] = {}
        if resolver is not None:
            for seg in segments:
                issue = seg.issue_id
                if issue is not None and issue not in states:
                    states[issue] = resolver.resolve(issue)
        rows.append(
            ReportRow(
                key=entry.key,
                occurrences=list(entry.occurrences),
                segments=segments,
                issue_states=states,
            )
        )
    return rows


def source_label(path: str) -> str:
    """Short display name for a source path.

    Drops the first path component and the extension, then any leading
    ``lib`` (``compiler/rustc_ast/src/lib.rs`` -> ``rustc_ast/src/lib``,
    ``library/alloc/src/vec.rs`` -> ``alloc/src/vec``).
    """
    parts = PurePosixPath(path).with_suffix("").parts
    if len(parts) > 1:
        parts = parts[1:]
    label = "/".join(parts)
    while label.startswith("lib"):
        label = label[3:]
    return label or path


def render_segment(seg: Segment) -> str:
    if seg.kind == EMPHASIS:
        return f"<span><strong>{html.escape(seg.text)}</strong></span>"
    if seg.kind in (HYPERLINK, ISSUE) and seg.href:
        return (
            f'<span><a href="{html.escape(seg.href, quote=True)}">'
            f"{html.escape(seg.display)}</a></span>"
        )
    return f"<span>{html.escape(seg.text)}</span>"


def render_row(row: ReportRow, tracker: Tracker, *, with_issues: bool) -> List[str]:
    description = "".join(render_segment(seg) for seg in row.segments)
    sources = "".join(
        f'<a href="{html.escape(tracker.blob_url(occ.path, occ.line), quote=True)}">'
        f"{html.escape(source_label(occ.path))}</a><br>"
        for occ in row.occurrences
    )
    cells = [f"<td>{description}</td>", f"<td>{sources}</td>"]
    if with_issues:
        states = "".join(
            f"#{issue}: {html.escape(state or 'unknown')}<br>"
            for issue, state in row.issue_states.items()
        )
        cells.append(f"<td>{states}</td>")
    return ["<tr>", *cells, "</tr>"]


def render_html(
    rows: Sequence[ReportRow],
    *,
    markers: Sequence[str],
    tracker: Optional[Tracker] = None,
    with_issues: bool = False,
) -> str:
    tracker = tracker or Tracker()
    title = f"{'s, '.join(markers)}s in the {tracker.repo} source"
    headers = ["Description", "Source"] + (["Issues"] if with_issues else [])
    lines: List[str] = [
        "<!doctype html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{html.escape(title)}</title>",
        f"<style>{TABLE_STYLE}</style>",
        "</head>",
        "<body>",
        "<table>",
        "<tr>" + "".join(f"<th>{name}</th>" for name in headers) + "</tr>",
    ]
    for row in rows:
        lines.extend(render_row(row, tracker, with_issues=with_issues))
    lines.extend(
        [
            "</table>",
            f"<script>{SORT_SCRIPT}</script>",
            "</body>",
            "</html>",
        ]
    )
    return "\n".join(lines) + "\n"


def build_report(
    rows: Sequence[ReportRow],
    *,
    repo: Path,
    markers: Sequence[str],
    tracker: Tracker,
    file_count: int,
) -> Dict[str, Any]:
    report = new_report(repo, markers, tracker_repo=tracker.repo, file_count=file_count)
    report["meta"]["entry_count"] = len(rows)
    report["meta"]["occurrence_count"] = sum(len(row.occurrences) for row in rows)
    report["rows"] = [row_to_dict(row) for row in rows]
    return report


def export_json(report: Dict[str, Any]) -> str:
    return json.dumps(report, ensure_ascii=True, indent=2)
