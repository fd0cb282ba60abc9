from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from patterns import ConfigError

from .constants import REPORT_CONFIG_FILES


def normalize_globs(value: Any) -> List[str]:
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def normalize_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return list(value)
    return []


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments from JSON-like text."""
    out: List[str] = []
    in_str = False
    escape = False
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if in_str:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            idx += 1
            continue
        if ch == '"':
            in_str = True
            out.append(ch)
            idx += 1
            continue
        if ch == "/" and idx + 1 < len(text):
            nxt = text[idx + 1]
            if nxt == "/":
                idx = text.find("\n", idx + 2)
                if idx == -1:
                    break
                continue
            if nxt == "*":
                end = text.find("*/", idx + 2)
                if end == -1:
                    break
                idx = end + 2
                continue
        out.append(ch)
        idx += 1
    return "".join(out)


def load_repo_config(repo: Path) -> Tuple[Dict[str, object], Optional[str]]:
    """Read the first report config file found at the repo root.

    Raises ConfigError when the file exists but cannot be used.
    """
    for filename in REPORT_CONFIG_FILES:
        path = repo / filename
        if not path.exists():
            continue
        try:
            payload = json.loads(strip_json_comments(path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Failed to parse {filename}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigError(f"Invalid {filename}: expected a JSON object")
        tracker = payload.get("tracker") if isinstance(payload.get("tracker"), dict) else {}

        def as_str(value: Any) -> Optional[str]:
            return value.strip() if isinstance(value, str) and value.strip() else None

        config: Dict[str, object] = {
            "markers": normalize_str_list(payload.get("markers")),
            "globs": normalize_globs(payload.get("globs")),
            "exclude_globs": normalize_globs(payload.get("exclude_globs")),
            "tracker_host": as_str(tracker.get("host")),
            "tracker_repo": as_str(tracker.get("repo")),
            "tracker_branch": as_str(tracker.get("branch")),
            "token_env": as_str(payload.get("token_env")),
        }
        return config, filename
    return {}, None
