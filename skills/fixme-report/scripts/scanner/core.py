from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from model import Occurrence
from patterns import DEFAULT_PATTERNS, Patterns
from utils import ToolState, progress, tool_available

from .discovery import list_repo_files, select_files
from .locator import scan_file
from .normalize import normalize_key
from .rg_helpers import rg_collect_annotations
from .store import OccurrenceStore


@dataclass
class ScanOptions:
    patterns: Patterns = DEFAULT_PATTERNS
    globs: List[str] = field(default_factory=list)
    exclude_globs: List[str] = field(default_factory=list)
    scan_mode: str = "auto"
    workers: int = 1


@dataclass
class ScanResult:
    store: OccurrenceStore
    files: List[str]
    warnings: List[str]
    scan_mode: str
    marker_lines: int = 0


def record_lines(
    store: OccurrenceStore, rel: str, lines: Sequence[Tuple[int, str]]
) -> int:
    for line_no, line in lines:
        store.record(normalize_key(line), Occurrence(path=rel, line=line_no))
    return len(lines)


def _scan_python(
    repo: Path,
    files: Sequence[str],
    options: ScanOptions,
    warnings: List[str],
) -> Dict[str, List[Tuple[int, str]]]:
    def scan_one(rel: str) -> Tuple[List[Tuple[int, str]], List[str]]:
        local: List[str] = []
        return scan_file(repo, rel, options.patterns, local), local

    if options.workers > 1:
        with ThreadPoolExecutor(max_workers=options.workers) as pool:
            outcomes = list(pool.map(scan_one, files))
    else:
        outcomes = [scan_one(rel) for rel in files]

    found: Dict[str, List[Tuple[int, str]]] = {}
    for rel, (lines, local_warnings) in zip(files, outcomes):
        warnings.extend(local_warnings)
        if lines:
            found[rel] = lines
    return found


def _resolve_scan_mode(requested: str, tools: ToolState) -> str:
    if requested == "auto":
        return "rg" if tool_available("rg", tools) else "python"
    return requested


def scan_repo(
    repo: Path,
    options: ScanOptions,
    tools: ToolState,
    *,
    files: Optional[List[str]] = None,
) -> ScanResult:
    warnings: List[str] = []
    if files is None:
        files = list_repo_files(repo, warnings, tools)
    files = select_files(files, globs=options.globs, exclude_globs=options.exclude_globs)
    mode = _resolve_scan_mode(options.scan_mode, tools)

    found: Optional[Dict[str, List[Tuple[int, str]]]] = None
    if mode == "rg":
        progress("Scanning with rg...")
        found = rg_collect_annotations(
            repo, options.patterns, warnings=warnings, tools=tools
        )
        if found is None:
            warnings.append("rg unavailable; falling back to Python scan")
            mode = "python"
    if found is None:
        progress(f"Scanning {len(files)} files...")
        found = _scan_python(repo, files, options, warnings)

    store = OccurrenceStore()
    marker_lines = 0
    for rel in files:
        lines = found.get(rel)
        if lines:
            marker_lines += record_lines(store, rel, lines)
    progress(f"Found {marker_lines} annotations ({len(store)} distinct)", done=True)
    return ScanResult(
        store=store,
        files=files,
        warnings=warnings,
        scan_mode=mode,
        marker_lines=marker_lines,
    )
