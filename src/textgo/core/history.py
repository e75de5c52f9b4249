"""In-memory bounded history ring (core domain)."""

from __future__ import annotations

from collections import deque
from typing import Optional

from textgo.core.config import DEFAULT_HISTORY_SIZE
from textgo.core.models import Entry


class HistoryRing:
    """Newest-first history; the oldest entries drop off on overflow."""

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE) -> None:
        if max_size < 1:
            raise ValueError("history size must be at least 1")
        self._entries: deque[Entry] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: Entry) -> None:
        self._entries.appendleft(entry)

    def update_response(self, entry_id: str, response: str) -> None:
        for entry in self._entries:
            if entry.id == entry_id:
                entry.response = response
                return

    def list_entries(self, limit: Optional[int] = None) -> list[Entry]:
        entries = list(self._entries)
        return entries if limit is None else entries[:limit]

    def __len__(self) -> int:
        return len(self._entries)
