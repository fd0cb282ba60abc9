from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from utils import ToolState, progress, run_cmd

from .constants import EXCLUDE_DIRS, FD_EXCLUDES, RG_EXCLUDES


NOISE_FILE_SUFFIXES = (
    ".egg",
    ".profraw",
    ".pyc",
    ".pyd",
    ".pyo",
    ".so",
    ".tsbuildinfo",
)


def is_generated_noise_file(path: str) -> bool:
    lower = path.lower()
    if any(lower.endswith(suffix) for suffix in NOISE_FILE_SUFFIXES):
        return True
    if ".egg-info/" in lower:
        return True
    return False


def _clean_listing(stdout: str) -> List[str]:
    files = [
        line.strip()
        for line in stdout.splitlines()
        if line.strip() and not is_generated_noise_file(line.strip())
    ]
    return sorted(set(files))


def list_repo_files(repo: Path, warnings: List[str], tools: ToolState) -> List[str]:
    progress("Discovering files...")
    fd_cmd = ["fd", "--type", "f", "--hidden"]
    for exclude in FD_EXCLUDES:
        fd_cmd.extend(["--exclude", exclude])
    result = run_cmd(fd_cmd, cwd=repo, warnings=warnings, tools=tools, capture=True)
    if result and result.returncode == 0:
        files = _clean_listing(result.stdout)
        progress(f"Found {len(files)} files", done=True)
        return files
    if result is not None and result.returncode != 0:
        warnings.append("fd failed; falling back to rg")

    cmd = ["rg", "--files", "--hidden"]
    for glob in RG_EXCLUDES:
        cmd.extend(["-g", glob])
    result = run_cmd(cmd, cwd=repo, warnings=warnings, tools=tools, capture=True)
    if result and result.returncode == 0:
        files = _clean_listing(result.stdout)
        progress(f"Found {len(files)} files", done=True)
        return files
    if result is not None and result.returncode != 0:
        warnings.append("rg failed; falling back to Python file walk")
    return list_repo_files_fallback(repo)


def list_repo_files_fallback(repo: Path) -> List[str]:
    files: List[str] = []
    skipped_symlinks = 0

    for root, dirs, filenames in os.walk(repo):
        dirs[:] = sorted(d for d in dirs if d not in EXCLUDE_DIRS)
        for filename in filenames:
            full = Path(root) / filename

            if full.is_symlink():
                skipped_symlinks += 1
                continue

            try:
                rel = full.relative_to(repo).as_posix()
            except ValueError:
                continue
            if is_generated_noise_file(rel):
                continue
            files.append(rel)

    if skipped_symlinks > 0:
        progress(
            f"Found {len(files)} files (fallback, skipped {skipped_symlinks} symlinks)",
            done=True,
        )
    else:
        progress(f"Found {len(files)} files (fallback)", done=True)
    return sorted(set(files))


def match_globs(path: str, globs: Sequence[str]) -> bool:
    if not globs:
        return False
    name = Path(path).name
    for pattern in globs:
        if any(token in pattern for token in ("*", "?", "[")):
            if fnmatch.fnmatchcase(path, pattern) or fnmatch.fnmatchcase(name, pattern):
                return True
            # "**/" also matches files at the repo root
            if pattern.startswith("**/") and fnmatch.fnmatchcase(path, pattern[3:]):
                return True
            continue
        if path == pattern or path.startswith(pattern.rstrip("/") + "/") or name == pattern:
            return True
    return False


def select_files(
    files: Iterable[str],
    *,
    globs: Optional[Sequence[str]] = None,
    exclude_globs: Optional[Sequence[str]] = None,
) -> List[str]:
    include = list(globs or [])
    exclude = list(exclude_globs or [])
    selected: List[str] = []
    for path in files:
        if match_globs(path, exclude):
            continue
        if include and not match_globs(path, include):
            continue
        selected.append(path)
    return selected
