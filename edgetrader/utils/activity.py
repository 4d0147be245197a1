"""
Bounded in-memory activity feed.

Traders push human-readable entries here for whatever presentation layer
sits on top; the newest entry comes first.
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class ActivityEntry:
    """One line of trader activity."""
    kind: str  # scan, trade, skip, error, info, buy, sell
    title: str
    detail: str = ""
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ActivityLog:
    """Most-recent-first log with fixed retention."""

    def __init__(self, maxlen: int = 150):
        self._entries: deque[ActivityEntry] = deque(maxlen=maxlen)

    def add(self, kind: str, title: str, detail: str = "") -> ActivityEntry:
        entry = ActivityEntry(kind=kind, title=title, detail=detail)
        self._entries.appendleft(entry)
        return entry

    def entries(self) -> list[ActivityEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
