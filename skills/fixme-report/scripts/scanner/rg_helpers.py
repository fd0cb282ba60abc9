from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from patterns import Patterns
from utils import ToolState, run_cmd

from .constants import RG_EXCLUDES
from .locator import scan_file


def rg_json_matches(
    repo: Path,
    args: Sequence[str],
    *,
    globs: Optional[List[str]] = None,
    warnings: Optional[List[str]] = None,
    tools: Optional[ToolState] = None,
) -> Optional[List[Dict[str, Any]]]:
    cmd = ["rg", "--json", *args]
    for glob in globs or []:
        cmd.extend(["-g", glob])
    result = run_cmd(cmd, cwd=repo, warnings=warnings if warnings is not None else [], tools=tools or ToolState(), capture=True)
    if not result:
        return None
    if result.returncode not in (0, 1):
        if warnings is not None:
            warnings.append(f"rg returned {result.returncode} for: {' '.join(args)}")
    matches: List[Dict[str, Any]] = []
    for line in result.stdout.splitlines():
        if not line:
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            continue
        if payload.get("type") == "match":
            matches.append(payload)
    return matches


def rg_collect_annotations(
    repo: Path,
    patterns: Patterns,
    *,
    warnings: List[str],
    tools: ToolState,
) -> Optional[Dict[str, List[Tuple[int, str]]]]:
    """Marker lines per file, or None when rg could not run.

    rg only narrows the candidate files. Each candidate is read back through
    ``scan_file`` so a file that is not valid UTF-8 anywhere is skipped with
    the same warning the Python scan gives.
    """
    args: List[str] = ["--hidden", "--fixed-strings"]
    for marker in patterns.markers:
        args.extend(["-e", marker])
    entries = rg_json_matches(repo, args, globs=RG_EXCLUDES, warnings=warnings, tools=tools)
    if entries is None:
        return None
    candidates: Set[str] = set()
    for entry in entries:
        path = entry.get("data", {}).get("path", {}).get("text")
        if not isinstance(path, str):
            continue
        if path.startswith("./"):
            path = path[2:]
        candidates.add(path)
    results: Dict[str, List[Tuple[int, str]]] = {}
    for path in sorted(candidates):
        lines = scan_file(repo, path, patterns, warnings)
        if lines:
            results[path] = lines
    return results
