"""Typed results returned by the client operations.

Each result exposes plain attributes plus ``to_dict()``/``text`` so an
outer tool layer can serialize it without re-deriving any of the logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from diffdelta_sync.filters import Selection
from diffdelta_sync.models import Feed, FeedItem, Head, Health


@dataclass
class HeadCheck:
    """Outcome of a read-only head probe."""

    head: Head
    changed: bool
    source_id: Optional[str] = None
    stored_cursor: Optional[str] = None

    @property
    def next_step(self) -> str:
        if not self.changed:
            return "No changes since last check. Feed is up to date."
        if self.head.counts.flagged > 0:
            return "Flagged items detected. Poll the feed to get items with action codes."
        if self.head.counts.new > 0:
            return "New items available. Poll the feed to review."
        return "Cursor changed but no flagged/new items. Low priority."

    def to_dict(self) -> Dict[str, Any]:
        head = self.head
        return {
            "changed_since_last_check": self.changed,
            "cursor": head.cursor,
            "feed_changed": head.changed,
            "generated_at": head.generated_at,
            "ttl_sec": head.ttl_sec,
            "source": self.source_id or "global",
            "counts": head.counts.to_dict(),
            "sources_checked": head.sources_checked,
            "sources_ok": head.sources_ok,
            "all_clear": head.all_clear,
            "all_clear_confidence": head.all_clear_confidence,
            "freshness": head.freshness,
            "next_step": self.next_step,
        }


@dataclass
class PollResult:
    """Outcome of a poll.

    Attributes:
        changed: False when the head cursor matched and no feed was fetched.
        text: Rendered summary for the caller.
        head: The head snapshot that decided the outcome.
        feed: The fetched feed, or None when unchanged.
        selection: Filtered ``(item, bucket)`` pairs in display order.
    """

    changed: bool
    text: str
    head: Head
    feed: Optional[Feed] = None
    selection: Selection = field(default_factory=list)

    @property
    def items(self) -> List[FeedItem]:
        return [item for item, _ in self.selection]

    @property
    def cursor(self) -> str:
        return self.feed.cursor if self.feed is not None else self.head.cursor


@dataclass
class HealthCheck:
    health: Health

    @property
    def status(self) -> str:
        return "healthy" if self.health.ok else "degraded"

    @property
    def note(self) -> str:
        h = self.health
        if h.ok:
            return f"Pipeline healthy. {h.sources_checked} sources checked, all OK."
        return f"Pipeline degraded: {h.sources_ok}/{h.sources_checked} sources OK. Some data may be stale."

    def to_dict(self) -> Dict[str, Any]:
        h = self.health
        return {
            "status": self.status,
            "last_run": h.time,
            "sources_checked": h.sources_checked,
            "sources_ok": h.sources_ok,
            "engine_version": h.engine_version,
            "note": self.note,
        }


@dataclass
class StackMatch:
    dependency: str
    sources: List[str]
    description: str = ""


@dataclass
class StackDiscovery:
    """Which sources to watch for a list of dependencies."""

    requested: List[str]
    matched: List[StackMatch] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    @property
    def sources(self) -> List[str]:
        """Union of matched sources, in first-seen order."""
        seen: Dict[str, None] = {}
        for m in self.matched:
            for s in m.sources:
                seen.setdefault(s, None)
        return list(seen)
