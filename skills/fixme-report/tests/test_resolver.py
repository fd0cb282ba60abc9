import os
import sys
import threading
import time
import unittest
from unittest.mock import MagicMock, patch

import requests

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from model import Tracker
from resolver import IssueLookupError, IssueResolver, status_from_payload


def ok_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestStatusFromPayload(unittest.TestCase):
    def test_state_and_reason(self):
        self.assertEqual(status_from_payload({"state": "open"}), "open")
        self.assertEqual(
            status_from_payload({"state": "closed", "state_reason": "completed"}),
            "closed (completed)",
        )
        self.assertEqual(status_from_payload({"state": "open", "state_reason": None}), "open")

    def test_bad_payloads(self):
        with self.assertRaises(IssueLookupError):
            status_from_payload([])
        with self.assertRaises(IssueLookupError):
            status_from_payload({"title": "no state"})


class TestIssueResolver(unittest.TestCase):
    def _resolver(self, session, warnings=None):
        return IssueResolver(
            Tracker(repo="rust-lang/rust"),
            "secret-token",
            session=session,
            timeout=5.0,
            warnings=warnings,
        )

    def test_sets_auth_headers(self):
        session = MagicMock()
        self._resolver(session)
        headers = session.headers.update.call_args[0][0]
        self.assertEqual(headers["Authorization"], "Bearer secret-token")
        self.assertEqual(headers["Accept"], "application/vnd.github+json")

    def test_second_resolve_is_cached(self):
        session = MagicMock()
        session.get.return_value = ok_response({"state": "open"})
        resolver = self._resolver(session)
        self.assertEqual(resolver.resolve(81658), "open")
        self.assertEqual(resolver.resolve(81658), "open")
        session.get.assert_called_once_with(
            "https://api.github.com/repos/rust-lang/rust/issues/81658", timeout=5.0
        )
        self.assertEqual(resolver.lookups, 1)

    def test_failure_is_cached_and_isolated(self):
        session = MagicMock()
        session.get.side_effect = [
            requests.ConnectionError("boom"),
            ok_response({"state": "closed", "state_reason": "not_planned"}),
        ]
        warnings = []
        resolver = self._resolver(session, warnings)
        self.assertEqual(resolver.resolve(111), "")
        self.assertEqual(resolver.resolve(222), "closed (not_planned)")
        self.assertEqual(resolver.resolve(111), "")
        self.assertEqual(session.get.call_count, 2)
        self.assertEqual(len(warnings), 1)
        self.assertIn("#111", warnings[0])

    def test_http_error_becomes_empty_status(self):
        session = MagicMock()
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        session.get.return_value = response
        resolver = self._resolver(session)
        self.assertEqual(resolver.resolve(404), "")
        response.json.assert_not_called()

    def test_malformed_json_becomes_empty_status(self):
        session = MagicMock()
        response = MagicMock()
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response
        warnings = []
        resolver = self._resolver(session, warnings)
        self.assertEqual(resolver.resolve(500), "")
        self.assertEqual(len(warnings), 1)

    def test_close_only_closes_owned_session(self):
        injected = MagicMock()
        self._resolver(injected).close()
        injected.close.assert_not_called()

        owned = MagicMock()
        with patch("resolver.requests.Session", return_value=owned):
            resolver = IssueResolver(Tracker(), "secret-token")
        resolver.close()
        owned.close.assert_called_once_with()

    def test_lookups_never_overlap(self):
        state = {"active": 0, "peak": 0}
        guard = threading.Lock()

        def slow_get(url, timeout):
            with guard:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.01)
            with guard:
                state["active"] -= 1
            return ok_response({"state": "open"})

        session = MagicMock()
        session.get.side_effect = slow_get
        resolver = self._resolver(session)
        threads = [
            threading.Thread(target=resolver.resolve, args=(100 + (idx % 4),))
            for idx in range(12)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(state["peak"], 1)
        self.assertEqual(session.get.call_count, 4)


if __name__ == "__main__":
    unittest.main()
