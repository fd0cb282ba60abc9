#!/usr/bin/env python3
"""Annotation report CLI: scan for FIXME/HACK lines, cross-reference, render."""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from _fs import safe_preview_text, write_lines, write_text
from model import Entry, ReportRow
from report import build_report, build_rows, export_json, render_html
from resolver import IssueResolver
from patterns import ConfigError
from scanner import SCAN_MODES, ScanOptions, ScanResult, load_repo_config, scan_repo
from scanner.constants import DEFAULT_TIMEOUT
from utils import ToolState, progress
from .config import Settings, build_settings


def top_counts(values: Sequence[str], max_items: int) -> List[str]:
    counts = Counter(values)
    return [f"{name}: {count}" for name, count in counts.most_common(max_items)]


def build_summary(
    *,
    result: ScanResult,
    entries: List[Entry],
    settings: Settings,
    warnings: List[str],
    max_sample: int,
    rows: Optional[List[ReportRow]] = None,
    lookups: int = 0,
) -> str:
    summary_lines: List[str] = []
    summary_lines.append(f"FILE_COUNT: {len(result.files)}")
    summary_lines.append(f"SCAN_MODE: {result.scan_mode}")
    summary_lines.append(f"MARKERS: {','.join(settings.patterns.markers)}")
    if settings.config_source:
        summary_lines.append(f"CONFIG: {settings.config_source}")
    summary_lines.append(f"ANNOTATIONS: {result.marker_lines}")
    summary_lines.append(f"DISTINCT: {len(entries)}")

    paths = [occ.path for entry in entries for occ in entry.occurrences]
    top_dirs = top_counts([p.split("/")[0] if "/" in p else "." for p in paths], 12)
    summary_lines.append("TOP_DIRS:")
    summary_lines.extend(f"  {line}" for line in top_dirs)

    markers: List[str] = []
    for entry in entries:
        for marker in settings.patterns.markers:
            if marker in entry.key:
                markers.extend([marker] * len(entry.occurrences))
    summary_lines.append("MARKER_COUNTS:")
    summary_lines.extend(f"  {line}" for line in top_counts(markers, len(settings.patterns.markers)))

    repeated = sorted(entries, key=lambda entry: (-len(entry.occurrences), entry.key))
    summary_lines.append("MOST_REPEATED:")
    summary_lines.extend(
        f"  {len(entry.occurrences)}x {entry.key}"
        for entry in repeated[:max_sample]
        if len(entry.occurrences) > 1
    )

    if rows is not None:
        issue_total = len(
            {seg.issue_id for row in rows for seg in row.segments if seg.issue_id is not None}
        )
        summary_lines.append(f"ISSUE_REFS: {issue_total}")
        summary_lines.append(f"ISSUE_LOOKUPS: {lookups}")

    if warnings:
        summary_lines.append(f"WARNINGS: {len(warnings)}")
        for warning in warnings[:max_sample]:
            summary_lines.append(f"  {warning}")
    return "\n".join(summary_lines)


def entries_payload(entries: List[Entry]) -> List[Dict[str, object]]:
    return [
        {
            "key": entry.key,
            "occurrences": [{"path": occ.path, "line": occ.line} for occ in entry.occurrences],
        }
        for entry in entries
    ]


def run_scan(args: argparse.Namespace, settings: Settings, tools: ToolState) -> ScanResult:
    options = ScanOptions(
        patterns=settings.patterns,
        globs=settings.globs,
        exclude_globs=settings.exclude_globs,
        scan_mode=args.scan,
        workers=max(1, int(getattr(args, "workers", 1))),
    )
    return scan_repo(settings.repo, options, tools)


def run_report(args: argparse.Namespace, settings: Settings, tools: ToolState) -> int:
    result = run_scan(args, settings, tools)
    warnings = list(result.warnings)
    entries = result.store.snapshot()

    resolver: Optional[IssueResolver] = None
    if settings.resolve_issues and settings.token:
        resolver = IssueResolver(
            settings.tracker,
            settings.token,
            timeout=args.timeout,
            warnings=warnings,
        )
    progress(f"Building {len(entries)} report rows...")
    try:
        rows = build_rows(
            entries,
            patterns=settings.patterns,
            tracker=settings.tracker,
            resolver=resolver,
        )
    finally:
        if resolver is not None:
            resolver.close()
    progress("Report rows built", done=True)

    out_dir = settings.out_dir
    document = render_html(
        rows,
        markers=settings.patterns.markers,
        tracker=settings.tracker,
        with_issues=settings.resolve_issues,
    )
    html_path = write_text(out_dir / "index.html", document)
    report = build_report(
        rows,
        repo=settings.repo,
        markers=settings.patterns.markers,
        tracker=settings.tracker,
        file_count=len(result.files),
    )
    write_text(out_dir / "report.json", export_json(report))

    summary = build_summary(
        result=result,
        entries=entries,
        settings=settings,
        warnings=warnings,
        max_sample=args.max_sample,
        rows=rows,
        lookups=resolver.lookups if resolver else 0,
    )
    write_lines(out_dir / "summary.txt", summary.splitlines())
    print(safe_preview_text(summary, max_bytes=900))
    print(f"REPORT: {html_path}")
    return 0


def run_scan_command(args: argparse.Namespace, settings: Settings, tools: ToolState) -> int:
    result = run_scan(args, settings, tools)
    entries = result.store.snapshot()
    if args.format == "json":
        output = {
            "files": len(result.files),
            "entries": entries_payload(entries),
            "warnings": result.warnings,
        }
        print(json.dumps(output, ensure_ascii=True, indent=2))
        return 0
    summary = build_summary(
        result=result,
        entries=entries,
        settings=settings,
        warnings=result.warnings,
        max_sample=args.max_sample,
    )
    print(summary)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cross-referenced report of FIXME/HACK annotations")
    parser.add_argument("--repo", default=".", help="Repo root (default: .)")
    parser.add_argument(
        "--out", default=None, help="Output directory (default: build/)"
    )
    parser.add_argument(
        "--marker",
        action="append",
        default=None,
        help="Marker keyword; repeat or comma-separate (default: FIXME,HACK)",
    )
    parser.add_argument(
        "--glob",
        action="append",
        default=None,
        help="Only scan files matching this glob (repeatable, e.g. '**/*.rs')",
    )
    parser.add_argument(
        "--exclude", action="append", default=None, help="Skip files matching this glob (repeatable)"
    )
    parser.add_argument("--scan", choices=list(SCAN_MODES), default="auto")
    parser.add_argument("--workers", type=int, default=1, help="Parallel file readers for the Python scan")
    parser.add_argument("--tracker-host", default=None, help="Tracker host (default: github.com)")
    parser.add_argument("--tracker-repo", default=None, help="Tracker repo owner/name (default: rust-lang/rust)")
    parser.add_argument("--branch", default=None, help="Branch used in source links (default: master)")
    parser.add_argument("--max-sample", type=int, default=20, help="Summary sample cap")

    sub = parser.add_subparsers(dest="command")

    report_parser = sub.add_parser("report", help="Scan and write index.html + report.json")
    report_parser.add_argument(
        "--resolve-issues",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Look up the status of each referenced issue (one request at a time)",
    )
    report_parser.add_argument(
        "--token-env", default=None, help="Environment variable holding the API token (default: GITHUB_TOKEN)"
    )
    report_parser.add_argument("--api-url", default=None, help="API base URL (default: https://api.github.com)")
    report_parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds")

    scan_parser = sub.add_parser("scan", help="Scan only; print a summary or the grouped entries")
    scan_parser.add_argument("--format", choices=["text", "json"], default="text")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command not in {"report", "scan"}:
        parser.print_help()
        return 1

    repo = Path(args.repo).resolve()
    try:
        repo_config, config_source = load_repo_config(repo)
        settings = build_settings(args, repo_config, config_source=config_source)
    except ConfigError as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=True), file=sys.stderr)
        return 2
    if not repo.is_dir():
        print(json.dumps({"error": f"repo not found: {repo}"}, ensure_ascii=True), file=sys.stderr)
        return 2

    tools = ToolState()
    if args.command == "report":
        return run_report(args, settings, tools)
    return run_scan_command(args, settings, tools)


if __name__ == "__main__":
    raise SystemExit(main())
