from __future__ import annotations

from typing import Dict, List

from model import Entry, Occurrence


class OccurrenceStore:
    """Append-only mapping of annotation key to its occurrences.

    Occurrences keep insertion order, which callers make equal to discovery
    order (file enumeration order, then line order). ``snapshot`` sorts by key
    using plain string ordering, so distinct keys never compare equal.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[Occurrence]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, key: str, occurrence: Occurrence) -> None:
        self._entries.setdefault(key, []).append(occurrence)

    def snapshot(self) -> List[Entry]:
        return [
            Entry(key=key, occurrences=list(self._entries[key]))
            for key in sorted(self._entries)
        ]
