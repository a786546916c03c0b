"""Cursor store — remembers the last confirmed cursor per feed."""

from __future__ import annotations

import threading
from typing import Dict, Optional

GLOBAL_FEED = "global"


def feed_key(source_id: Optional[str] = None) -> str:
    """Return the store key for the global feed or a single source."""
    return f"source:{source_id}" if source_id else GLOBAL_FEED


class CursorStore:
    """Session-scoped cursor memory.

    Each feed key maps to the cursor of the last feed document that was
    fetched in full. Nothing is written to disk: a new store starts with
    every feed unknown, so separate sessions and test runs never share
    state. All access goes through a lock, so overlapping polls from
    several threads cannot corrupt an entry.
    """

    def __init__(self) -> None:
        self._cursors: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        """Get the stored cursor for a feed key."""
        with self._lock:
            return self._cursors.get(key)

    def set(self, key: str, cursor: str) -> None:
        """Record a confirmed cursor. Empty cursors are ignored."""
        if not cursor:
            return
        with self._lock:
            self._cursors[key] = cursor

    def advance(self, key: str, expected: Optional[str], cursor: str) -> bool:
        """Set ``cursor`` only if the key still holds ``expected``.

        ``expected`` is the cursor seen before the feed was fetched (None for
        an unknown feed). Returns False, leaving the entry as it is, when
        another poll moved the cursor in the meantime or ``cursor`` is empty.
        """
        if not cursor:
            return False
        with self._lock:
            if self._cursors.get(key) != expected:
                return False
            self._cursors[key] = cursor
            return True

    def clear(self, key: Optional[str] = None) -> None:
        """Clear cursor(s). If key is None, clears all cursors."""
        with self._lock:
            if key:
                self._cursors.pop(key, None)
            else:
                self._cursors.clear()

    def snapshot(self) -> Dict[str, str]:
        """Return a copy of every stored cursor."""
        with self._lock:
            return dict(self._cursors)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cursors

    def __len__(self) -> int:
        with self._lock:
            return len(self._cursors)
