"""Issue status lookups against the GitHub REST API.

Lookups are strictly serialized: a single lock is held across the cache
check, the HTTP request and the cache update, so no two requests are ever in
flight together and requests go out in the order ids are first asked for.
Every outcome is cached for the lifetime of the resolver, including failures,
which are stored as an empty status and never retried.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import requests

from model import Tracker
from utils import progress


class IssueLookupError(Exception):
    """Raised internally when an issue payload cannot be turned into a status."""


def status_from_payload(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise IssueLookupError("issue payload must be a JSON object")
    state = payload.get("state")
    if not isinstance(state, str) or not state:
        raise IssueLookupError("issue payload has no state")
    reason = payload.get("state_reason")
    if isinstance(reason, str) and reason:
        return f"{state} ({reason})"
    return state


class IssueResolver:
    def __init__(
        self,
        tracker: Tracker,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        warnings: Optional[List[str]] = None,
    ):
        self.tracker = tracker
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        self.warnings = warnings if warnings is not None else []
        self.lookups = 0
        self._cache: Dict[int, str] = {}
        self._lock = threading.Lock()

    def resolve(self, issue_id: int) -> str:
        with self._lock:
            cached = self._cache.get(issue_id)
            if cached is not None:
                return cached
            status = self._fetch(issue_id)
            self._cache[issue_id] = status
            return status

    def close(self) -> None:
        """Close the HTTP session if this resolver created it."""
        if self._owns_session:
            self.session.close()

    def _fetch(self, issue_id: int) -> str:
        self.lookups += 1
        url = self.tracker.api_issue_url(issue_id)
        progress(f"Resolving issue #{issue_id}...")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            status = status_from_payload(response.json())
        except (requests.RequestException, ValueError, IssueLookupError) as exc:
            self.warnings.append(f"issue #{issue_id} lookup failed: {exc}")
            return ""
        return status

