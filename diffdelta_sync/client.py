"""DiffDeltaSync — incremental polling of DiffDelta intelligence feeds."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import requests

from diffdelta_sync import formatting
from diffdelta_sync.config import Settings
from diffdelta_sync.cursor import CursorStore, feed_key
from diffdelta_sync.filters import FilterEngine
from diffdelta_sync.models import Feed, Head, Health, SourceInfo, StackMap
from diffdelta_sync.results import HeadCheck, HealthCheck, PollResult, StackDiscovery, StackMatch
from diffdelta_sync.transport import Fetcher

logger = logging.getLogger(__name__)


class DiffDeltaSync:
    """Client for tracking DiffDelta intelligence feeds incrementally.

    Usage::

        from diffdelta_sync import DiffDeltaSync

        dd = DiffDeltaSync()

        # Cheap probe (~200 bytes); never moves the cursor
        if dd.check_head().changed:
            result = dd.poll(tags=["security"])
            print(result.text)

        # Poll a specific source
        print(dd.poll_source("cisa_kev").text)

    ``check_head`` is a read-only probe. Only ``poll``/``poll_source``
    advance the stored cursor, and only after the full feed was fetched,
    so a caller can probe as often as it likes without missing a change.

    Args:
        settings: Connection settings. Defaults to ``Settings.from_env()``.
        cursors: Cursor store to use. Each client gets a fresh, empty store
            unless one is passed in.
        session: Optional ``requests.Session`` to send requests with.
        degrade_on_metadata_failure: Skip the tag filter instead of failing
            when sources.json cannot be fetched.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cursors: Optional[CursorStore] = None,
        session: Optional[requests.Session] = None,
        degrade_on_metadata_failure: bool = True,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self._cursors = cursors if cursors is not None else CursorStore()
        self._fetcher = Fetcher(self.settings, session=session)
        self._filters = FilterEngine(
            self._source_tags, degrade_on_metadata_failure=degrade_on_metadata_failure
        )

    # ── Change detection ──

    def check_head(self, source_id: Optional[str] = None) -> HeadCheck:
        """Check whether a feed changed since the last confirmed poll.

        Args:
            source_id: Source to check. Omit for the global feed.

        Returns:
            HeadCheck with ``changed`` and the head snapshot. ``changed`` is
            True when no cursor is stored yet or the head cursor differs.
        """
        head = self.head(source_id)
        stored = self._cursors.get(feed_key(source_id))
        changed = stored is None or stored != head.cursor
        return HeadCheck(head=head, changed=changed, source_id=source_id, stored_cursor=stored)

    def poll(
        self,
        tags: Optional[Sequence[str]] = None,
        sources: Optional[Sequence[str]] = None,
        include_removed: bool = False,
    ) -> PollResult:
        """Poll the global feed for items since the last poll.

        Checks head.json first. Only fetches the full feed if the cursor has
        changed, then saves the new cursor.

        Args:
            tags: Keep items whose source has one of these tags.
            sources: Keep items from these source IDs.
            include_removed: Also return the "removed" bucket.
        """
        return self._poll(None, tags=tags, sources=sources, include_removed=include_removed)

    def poll_source(self, source_id: str, include_removed: bool = False) -> PollResult:
        """Poll a single source's feed.

        Smaller payload than ``poll(sources=[...])`` and tracked under its
        own cursor.
        """
        return self._poll(source_id, include_removed=include_removed)

    def _poll(
        self,
        source_id: Optional[str],
        tags: Optional[Sequence[str]] = None,
        sources: Optional[Sequence[str]] = None,
        include_removed: bool = False,
    ) -> PollResult:
        check = self.check_head(source_id)
        if not check.changed:
            logger.debug("%s unchanged at cursor %s", feed_key(source_id), check.head.cursor)
            return PollResult(
                changed=False,
                text=formatting.no_changes_message(check.head, source_id),
                head=check.head,
            )

        feed = self.fetch_feed(source_id)
        key = feed_key(source_id)
        if not feed.cursor:
            logger.warning("%s feed has no cursor; keeping %s", key, check.stored_cursor)
        elif self._cursors.advance(key, check.stored_cursor, feed.cursor):
            logger.debug("%s cursor %s -> %s", key, check.stored_cursor, feed.cursor)
        else:
            logger.debug("%s cursor moved by another poll; not storing %s", key, feed.cursor)

        selection = self._filters.select(
            feed, include_removed=include_removed, sources=sources, tags=tags
        )
        text = formatting.format_items(
            selection, narrative=feed.narrative, feed_empty=not feed.items
        )
        return PollResult(changed=True, text=text, head=check.head, feed=feed, selection=selection)

    # ── Low-level fetch methods ──

    def head(self, source_id: Optional[str] = None) -> Head:
        """Fetch a head.json pointer (global, or for one source)."""
        return Head.from_raw(self._fetcher.get_json(self._feed_path(source_id, "head.json")))

    def fetch_feed(self, source_id: Optional[str] = None) -> Feed:
        """Fetch a full latest.json feed. Does not touch stored cursors."""
        return Feed.from_raw(self._fetcher.get_json(self._feed_path(source_id, "latest.json")))

    def sources(self) -> List[SourceInfo]:
        """List all available DiffDelta sources."""
        data = self._fetcher.get_json("/diff/sources.json")
        return [SourceInfo.from_raw(s) for s in data.get("sources") or [] if isinstance(s, dict)]

    # ── Discovery & health ──

    def list_sources(self) -> str:
        """Render the source catalogue with a tag summary."""
        return formatting.format_sources(self.sources())

    def discover_stack(self, dependencies: Sequence[str]) -> StackDiscovery:
        """Map dependency/technology names to the sources worth watching.

        Names are matched case-insensitively against stacks.json.
        """
        stack = StackMap.from_raw(self._fetcher.get_json("/diff/stacks.json"))
        discovery = StackDiscovery(requested=list(dependencies))
        for dep in dependencies:
            entry = stack.lookup(dep)
            if entry is None:
                discovery.unmatched.append(dep)
            else:
                discovery.matched.append(StackMatch(dep, entry.sources, entry.description))
        return discovery

    def check_health(self) -> HealthCheck:
        """Check that the feed pipeline is running."""
        return HealthCheck(Health.from_raw(self._fetcher.get_json("/healthz.json")))

    # ── Cursor management ──

    @property
    def cursors(self) -> Dict[str, str]:
        """Copy of the stored cursors, keyed by feed key."""
        return self._cursors.snapshot()

    def reset_cursors(self, source_id: Optional[str] = None) -> None:
        """Reset stored cursors so the next poll returns all current items.

        Args:
            source_id: Reset cursor for a specific source. None = reset all.
        """
        self._cursors.clear(feed_key(source_id) if source_id else None)

    def close(self) -> None:
        self._fetcher.close()

    # ── Internal ──

    def _source_tags(self) -> Dict[str, List[str]]:
        return {s.source_id: s.tags for s in self.sources()}

    @staticmethod
    def _feed_path(source_id: Optional[str], name: str) -> str:
        if source_id:
            return f"/diff/{source_id}/{name}"
        return f"/diff/{name}"

    def __repr__(self) -> str:
        tier = "pro" if self.settings.api_key else "free"
        return f"DiffDeltaSync(base_url={self.settings.base_url!r}, tier={tier!r})"
