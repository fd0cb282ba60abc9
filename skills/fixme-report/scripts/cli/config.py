from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from _fs import DEFAULT_OUT_DIR
from model import DEFAULT_TRACKER, Tracker
from patterns import DEFAULT_MARKERS, ConfigError, Patterns, compile_patterns
from scanner.constants import DEFAULT_TOKEN_ENV


@dataclass
class Settings:
    repo: Path
    out_dir: Path
    patterns: Patterns
    tracker: Tracker
    globs: List[str] = field(default_factory=list)
    exclude_globs: List[str] = field(default_factory=list)
    resolve_issues: bool = False
    token: Optional[str] = None
    token_env: str = DEFAULT_TOKEN_ENV
    config_source: Optional[str] = None


def parse_markers(values: Optional[List[str]]) -> List[str]:
    markers: List[str] = []
    for value in values or []:
        markers.extend(part.strip() for part in value.split(",") if part.strip())
    return markers


def resolve_out_dir(out_arg: Optional[str]) -> Path:
    if out_arg:
        out_path = Path(out_arg)
        if out_path.is_absolute():
            return out_path
        return out_path.resolve()
    return DEFAULT_OUT_DIR.resolve()


def load_token(env_name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    token = (env.get(env_name) or "").strip()
    if not token:
        raise ConfigError(f"issue resolution needs a token in ${env_name}")
    return token


def validate_tracker_repo(value: str) -> str:
    parts = [part for part in value.strip().strip("/").split("/") if part]
    if len(parts) != 2:
        raise ConfigError(f"tracker repo must look like owner/name, got {value!r}")
    return "/".join(parts)


def build_settings(
    args: argparse.Namespace,
    repo_config: Dict[str, object],
    *,
    config_source: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Merge CLI flags over the repo config file; raises ConfigError."""
    repo = Path(args.repo).resolve()
    markers = parse_markers(getattr(args, "marker", None)) or list(repo_config.get("markers") or []) or list(DEFAULT_MARKERS)
    patterns = compile_patterns(markers)

    tracker = Tracker(
        host=getattr(args, "tracker_host", None) or repo_config.get("tracker_host") or DEFAULT_TRACKER.host,
        repo=validate_tracker_repo(
            getattr(args, "tracker_repo", None) or repo_config.get("tracker_repo") or DEFAULT_TRACKER.repo
        ),
        branch=getattr(args, "branch", None) or repo_config.get("tracker_branch") or DEFAULT_TRACKER.branch,
        api_url=getattr(args, "api_url", None) or DEFAULT_TRACKER.api_url,
    )

    globs = list(getattr(args, "glob", None) or []) or list(repo_config.get("globs") or [])
    exclude_globs = list(repo_config.get("exclude_globs") or []) + list(getattr(args, "exclude", None) or [])

    token_env = getattr(args, "token_env", None) or repo_config.get("token_env") or DEFAULT_TOKEN_ENV
    resolve_issues = bool(getattr(args, "resolve_issues", False))
    token = load_token(token_env, environ) if resolve_issues else None

    return Settings(
        repo=repo,
        out_dir=resolve_out_dir(getattr(args, "out", None)),
        patterns=patterns,
        tracker=tracker,
        globs=globs,
        exclude_globs=exclude_globs,
        resolve_issues=resolve_issues,
        token=token,
        token_env=token_env,
        config_source=config_source,
    )
