from __future__ import annotations

from .constants import (
    EXCLUDE_DIRS,
    FD_EXCLUDES,
    REPORT_CONFIG_FILES,
    RG_EXCLUDES,
    SCAN_MODES,
    TRIM_CHARS,
)
from .discovery import (
    is_generated_noise_file,
    list_repo_files,
    list_repo_files_fallback,
    match_globs,
    select_files,
)
from .locator import LineIndex, locate_annotations, read_source, scan_file
from .normalize import normalize_key
from .repo_config import load_repo_config, normalize_globs, strip_json_comments
from .rg_helpers import rg_collect_annotations, rg_json_matches
from .store import OccurrenceStore


from .core import ScanOptions, ScanResult, record_lines, scan_repo
