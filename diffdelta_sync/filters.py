"""Bucket, source and tag filtering over a fetched feed."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from diffdelta_sync.errors import FetchError
from diffdelta_sync.models import BUCKETS, Feed, FeedItem

logger = logging.getLogger(__name__)

Selection = List[Tuple[FeedItem, str]]
TagLookup = Callable[[], Dict[str, List[str]]]


def buckets_for(include_removed: bool = False) -> List[str]:
    """Buckets to surface, flagged first. ``removed`` is opt-in."""
    if include_removed:
        return list(BUCKETS)
    return [b for b in BUCKETS if b != "removed"]


class FilterEngine:
    """Reduces a feed to the ``(item, bucket)`` pairs a caller asked for.

    Args:
        tag_lookup: Returns a source_id -> tags mapping. Only called when a
            tag filter is requested, once per ``select`` call.
        degrade_on_metadata_failure: When the tag lookup raises a
            ``FetchError``, skip the tag filter and keep every item that
            passes the other filters instead of failing the whole call.
            Set to False to propagate the error.
    """

    def __init__(self, tag_lookup: TagLookup, degrade_on_metadata_failure: bool = True) -> None:
        self._tag_lookup = tag_lookup
        self.degrade_on_metadata_failure = degrade_on_metadata_failure

    def select(
        self,
        feed: Feed,
        include_removed: bool = False,
        sources: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Selection:
        """Apply bucket, then source AND tag filters.

        Order is preserved: buckets in priority order, then items in feed
        order within each bucket. Empty ``sources``/``tags`` mean no filter.
        """
        source_tags = self._resolve_tags() if tags else None

        selected: Selection = []
        for bucket in buckets_for(include_removed):
            for item in feed.buckets.get(bucket, []):
                if sources and item.source not in sources:
                    continue
                if source_tags is not None:
                    item_tags = source_tags.get(item.source, [])
                    if not any(t in item_tags for t in tags):
                        continue
                selected.append((item, bucket))
        return selected

    def _resolve_tags(self) -> Optional[Dict[str, List[str]]]:
        try:
            return self._tag_lookup()
        except FetchError as e:
            if not self.degrade_on_metadata_failure:
                raise
            logger.warning("Source metadata unavailable, skipping tag filter: %s", e)
            return None
