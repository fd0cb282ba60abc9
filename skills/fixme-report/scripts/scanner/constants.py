from __future__ import annotations

# Stripped from both ends of an annotation line to form its grouping key.
TRIM_CHARS = "/* :-.^,"

REPORT_CONFIG_FILES = (".fixme-report.json", "fixme-report.json")

DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_TIMEOUT = 10.0

EXCLUDE_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
    "build",
    "dist",
    "target",
}

FD_EXCLUDES = sorted(EXCLUDE_DIRS)

RG_EXCLUDES = [f"!**/{name}/**" for name in sorted(EXCLUDE_DIRS)]

SCAN_MODES = ("auto", "rg", "python")
