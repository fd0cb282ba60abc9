import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from model import EMPHASIS, HYPERLINK, ISSUE, TEXT, Tracker
from patterns import (
    DEFAULT_PATTERNS,
    ISSUE_RE,
    ConfigError,
    compile_patterns,
)
from references import (
    emphasis_spans,
    extract_segments,
    hyperlink_label,
    hyperlink_spans,
    issue_numbers,
    reference_spans,
    trim_url,
)


SAMPLES = [
    "FIXME: #7698, false positive on some code",
    "FIXME(jackh726): This is a hack, remove it",
    "#[allow(dead_code)] // FIXME(81658): should be used + lint reinstated after #83171 relands",
    "FIXME implement 128bit atomics",
    "HACK(https://github.com/foo/bar/pull/555) 777",
    "FIXME: see https://github.com/rust-lang/rust/issues/12345 and #4242.",
    "FIXME(eddyb) 50% of E0599 cases hit wasmtime#6104 via slice[..100]",
    "contact dev@example.org about 4242",
    "FIXME",
    "",
]


class TestIssuePattern(unittest.TestCase):
    def test_issue_pattern_boundaries(self):
        self.assertEqual(ISSUE_RE.findall("FIXME 1232"), ["1232"])
        self.assertEqual(ISSUE_RE.findall("#7698,"), ["7698"])
        self.assertEqual(ISSUE_RE.findall("12 and 99"), [])
        self.assertEqual(ISSUE_RE.findall("128bit"), [])
        self.assertEqual(ISSUE_RE.findall("E0599"), [])
        self.assertEqual(ISSUE_RE.findall("u128"), [])
        self.assertEqual(ISSUE_RE.findall("50% 100%"), [])
        self.assertEqual(ISSUE_RE.findall("foo_123 123_foo"), [])
        self.assertEqual(ISSUE_RE.findall("0123"), [])
        self.assertEqual(ISSUE_RE.findall("(81658)"), ["81658"])

    def test_custom_markers_compile(self):
        patterns = compile_patterns(["TODO", "XXX", "TODO"])
        self.assertEqual(patterns.markers, ("TODO", "XXX"))
        match = patterns.emphasis.search("TODO(alice): later")
        self.assertIsNotNone(match)
        self.assertEqual(match.group(1), "alice")

    def test_invalid_markers_are_config_errors(self):
        with self.assertRaises(ConfigError):
            compile_patterns([])
        with self.assertRaises(ConfigError):
            compile_patterns([""])
        with self.assertRaises(ConfigError):
            compile_patterns(["FIX ME"])
        with self.assertRaises(ConfigError):
            compile_patterns(["FIXME("])
        with self.assertRaises(ConfigError):
            compile_patterns([42])


class TestReferenceExtraction(unittest.TestCase):
    def test_hash_issue_number(self):
        text = "FIXME: #7698, false positive..."
        spans = reference_spans(text)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].kind, ISSUE)
        self.assertEqual(text[spans[0].start:spans[0].end], "7698")

    def test_named_capture_is_emphasis_not_issue(self):
        text = "FIXME(jackh726): This is a hack..."
        self.assertEqual(issue_numbers(text), [])
        spans = emphasis_spans(text)
        self.assertEqual(len(spans), 1)
        self.assertEqual(text[spans[0].start:spans[0].end], "jackh726")

    def test_numeric_capture_and_trailing_issue(self):
        text = "#[allow(dead_code)] // FIXME(81658): should be used + lint reinstated after #83171 relands"
        self.assertEqual(issue_numbers(text), [81658, 83171])
        self.assertEqual(emphasis_spans(text), [])

    def test_number_followed_by_letter_is_not_issue(self):
        self.assertEqual(issue_numbers("FIXME implement 128bit atomics"), [])
        self.assertEqual(issue_numbers("FIXME: 12 things, 7 more"), [])

    def test_bare_number_without_hash(self):
        self.assertEqual(issue_numbers("FIXME 1232"), [1232])

    def test_url_digits_are_not_reparsed(self):
        text = "FIXME: see https://github.com/rust-lang/rust/issues/12345 and #4242."
        spans = reference_spans(text)
        self.assertEqual([span.kind for span in spans], [HYPERLINK, ISSUE])
        self.assertEqual(
            text[spans[0].start:spans[0].end],
            "https://github.com/rust-lang/rust/issues/12345",
        )
        self.assertEqual(issue_numbers(text), [4242])

    def test_hyperlink_inside_marker_parens(self):
        text = "HACK(https://github.com/foo/bar/pull/555) 777"
        segments = extract_segments(text)
        kinds = [seg.kind for seg in segments]
        self.assertEqual(kinds, [TEXT, HYPERLINK, TEXT, ISSUE])
        link = segments[1]
        self.assertEqual(link.text, "https://github.com/foo/bar/pull/555")
        self.assertEqual(link.href, "https://github.com/foo/bar/pull/555")
        self.assertEqual(link.display, "foo/bar/pull/555")
        self.assertEqual(segments[3].href, "https://github.com/rust-lang/rust/issues/777")

    def test_known_false_positives_are_kept(self):
        text = "FIXME(eddyb) 50% of E0599 cases hit wasmtime#6104 via slice[..100]"
        self.assertEqual(issue_numbers(text), [6104, 100])
        spans = emphasis_spans(text)
        self.assertEqual([text[s.start:s.end] for s in spans], ["eddyb"])

    def test_email_is_hyperlink(self):
        text = "contact dev@example.org about 4242"
        segments = extract_segments(text)
        links = [seg for seg in segments if seg.kind == HYPERLINK]
        self.assertEqual(len(links), 1)
        self.assertEqual(links[0].href, "mailto:dev@example.org")
        self.assertEqual(issue_numbers(text), [4242])

    def test_only_first_emphasis_per_gap(self):
        text = "FIXME(alice) and HACK(bob)"
        spans = emphasis_spans(text)
        self.assertEqual([text[s.start:s.end] for s in spans], ["alice"])

    def test_emphasis_in_each_gap(self):
        text = "FIXME(alice) see 1234 then HACK(bob)"
        spans = emphasis_spans(text)
        self.assertEqual([text[s.start:s.end] for s in spans], ["alice", "bob"])

    def test_tracker_controls_issue_links_and_labels(self):
        tracker = Tracker(host="github.com", repo="owner/project")
        segments = extract_segments("FIXME #321", tracker=tracker)
        issue = [seg for seg in segments if seg.kind == ISSUE][0]
        self.assertEqual(issue.href, "https://github.com/owner/project/issues/321")
        self.assertEqual(issue.issue_id, 321)

    def test_custom_marker_emphasis(self):
        patterns = compile_patterns(["TODO"])
        segments = extract_segments("TODO(carol): FIXME(dave)", patterns=patterns)
        emphasized = [seg.text for seg in segments if seg.kind == EMPHASIS]
        self.assertEqual(emphasized, ["carol"])

    def test_spans_sorted_non_overlapping_and_segments_cover_text(self):
        for text in SAMPLES:
            segments = extract_segments(text, patterns=DEFAULT_PATTERNS)
            self.assertEqual("".join(seg.text for seg in segments), text, text)
            position = 0
            for seg in segments:
                self.assertEqual(seg.start, position, text)
                self.assertLess(seg.start, seg.end, text)
                position = seg.end
            spans = reference_spans(text)
            for prev, nxt in zip(spans, spans[1:]):
                self.assertLessEqual(prev.end, nxt.start, text)


class TestHyperlinks(unittest.TestCase):
    def test_offsets_are_code_point_indices(self):
        text = "FIXME(müller): café 81658"
        segments = extract_segments(text)
        issue = [seg for seg in segments if seg.kind == ISSUE][0]
        self.assertEqual(issue.start, text.index("81658"))
        self.assertEqual(text[issue.start:issue.end], "81658")
        self.assertEqual(emphasis_spans(text)[0].start, text.index("müller"))

    def test_trim_url(self):
        self.assertEqual(trim_url("https://x.org/path."), "https://x.org/path")
        self.assertEqual(trim_url("https://x.org/a_(b)"), "https://x.org/a_(b)")
        self.assertEqual(trim_url("https://x.org/a)"), "https://x.org/a")
        self.assertEqual(trim_url("https://x.org/a),"), "https://x.org/a")

    def test_hyperlink_label(self):
        self.assertEqual(
            hyperlink_label("https://github.com/rust-lang/rust/issues/1"),
            "rust-lang/rust/issues/1",
        )
        self.assertEqual(hyperlink_label("http://example.com/x"), "example.com/x")
        self.assertEqual(
            hyperlink_label("https://gitlab.com/a/b", host="gitlab.com"), "a/b"
        )

    def test_hyperlink_spans_leftmost_first(self):
        text = "see http://a.example/1 and https://b.example/2, ok"
        spans = hyperlink_spans(text)
        self.assertEqual(
            [text[s.start:s.end] for s in spans],
            ["http://a.example/1", "https://b.example/2"],
        )


if __name__ == "__main__":
    unittest.main()
