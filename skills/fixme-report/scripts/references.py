from __future__ import annotations

from typing import List, Optional

from model import (
    DEFAULT_TRACKER,
    EMPHASIS,
    HYPERLINK,
    ISSUE,
    TEXT,
    EmphasisSpan,
    ReferenceSpan,
    Segment,
    Tracker,
)
from patterns import DEFAULT_PATTERNS, HYPERLINK_RE, ISSUE_RE, Patterns


_TRAILING_PUNCT = ".,:;!?'\""
_CLOSERS = {")": "(", "]": "[", "}": "{"}


def trim_url(url: str) -> str:
    """Drop trailing sentence punctuation and unbalanced closing brackets."""
    while url:
        last = url[-1]
        if last in _TRAILING_PUNCT:
            url = url[:-1]
            continue
        opener = _CLOSERS.get(last)
        if opener and url.count(last) > url.count(opener):
            url = url[:-1]
            continue
        break
    return url


def hyperlink_spans(text: str) -> List[ReferenceSpan]:
    spans: List[ReferenceSpan] = []
    for match in HYPERLINK_RE.finditer(text):
        raw = match.group(0)
        if match.group("url"):
            raw = trim_url(raw)
            # a bare "scheme://" is not a link
            if raw.endswith("://") or "://" not in raw:
                continue
        spans.append(ReferenceSpan(start=match.start(), end=match.start() + len(raw), kind=HYPERLINK))
    return spans


def hyperlink_label(url: str, host: str = DEFAULT_TRACKER.host) -> str:
    for scheme in ("https://", "http://"):
        if url.startswith(scheme):
            url = url[len(scheme):]
            break
    prefix = f"{host}/"
    if url.startswith(prefix):
        url = url[len(prefix):]
    return url


def _hyperlink_segment(text: str, span: ReferenceSpan, tracker: Tracker) -> Segment:
    url = text[span.start:span.end]
    if "://" in url:
        href = url
        label = hyperlink_label(url, tracker.host)
    else:
        href = f"mailto:{url}"
        label = url
    return Segment(kind=HYPERLINK, start=span.start, end=span.end, text=url, href=href, label=label)


def _emphasis_segments(
    text: str, start: int, end: int, patterns: Patterns
) -> List[Segment]:
    chunk = text[start:end]
    match = patterns.emphasis.search(chunk)
    if not match:
        return [Segment(kind=TEXT, start=start, end=end, text=chunk)]
    cap_start = start + match.start(1)
    cap_end = start + match.end(1)
    segments: List[Segment] = []
    if cap_start > start:
        segments.append(Segment(kind=TEXT, start=start, end=cap_start, text=text[start:cap_start]))
    segments.append(Segment(kind=EMPHASIS, start=cap_start, end=cap_end, text=text[cap_start:cap_end]))
    if end > cap_end:
        segments.append(Segment(kind=TEXT, start=cap_end, end=end, text=text[cap_end:end]))
    return segments


def _issue_segments(
    text: str, start: int, end: int, patterns: Patterns, tracker: Tracker
) -> List[Segment]:
    segments: List[Segment] = []
    last = start
    # lookarounds must see the gap only, not the hyperlink next to it
    for match in ISSUE_RE.finditer(text[start:end]):
        m_start = start + match.start()
        m_end = start + match.end()
        if m_start != last:
            segments.extend(_emphasis_segments(text, last, m_start, patterns))
        number = match.group(0)
        segments.append(
            Segment(
                kind=ISSUE,
                start=m_start,
                end=m_end,
                text=number,
                href=tracker.issue_url(number),
            )
        )
        last = m_end
    if last != end:
        segments.extend(_emphasis_segments(text, last, end, patterns))
    return segments


def extract_segments(
    text: str,
    *,
    patterns: Patterns = DEFAULT_PATTERNS,
    tracker: Optional[Tracker] = None,
) -> List[Segment]:
    """Split annotation text into plain, emphasis, hyperlink and issue segments.

    Hyperlinks are found first over the whole text. Issue numbers are only
    sought in the gaps between hyperlinks, and each remaining plain run is
    checked once for a ``MARKER(name)`` capture. Segments cover the text
    contiguously and in order.
    """
    tracker = tracker or DEFAULT_TRACKER
    segments: List[Segment] = []
    last = 0
    for span in hyperlink_spans(text):
        if span.start != last:
            segments.extend(_issue_segments(text, last, span.start, patterns, tracker))
        segments.append(_hyperlink_segment(text, span, tracker))
        last = span.end
    if last != len(text):
        segments.extend(_issue_segments(text, last, len(text), patterns, tracker))
    return segments


def reference_spans(text: str, *, patterns: Patterns = DEFAULT_PATTERNS) -> List[ReferenceSpan]:
    return [
        ReferenceSpan(start=seg.start, end=seg.end, kind=seg.kind)
        for seg in extract_segments(text, patterns=patterns)
        if seg.kind in (HYPERLINK, ISSUE)
    ]


def emphasis_spans(text: str, *, patterns: Patterns = DEFAULT_PATTERNS) -> List[EmphasisSpan]:
    return [
        EmphasisSpan(start=seg.start, end=seg.end)
        for seg in extract_segments(text, patterns=patterns)
        if seg.kind == EMPHASIS
    ]


def issue_numbers(text: str, *, patterns: Patterns = DEFAULT_PATTERNS) -> List[int]:
    return [
        int(seg.text)
        for seg in extract_segments(text, patterns=patterns)
        if seg.kind == ISSUE
    ]
