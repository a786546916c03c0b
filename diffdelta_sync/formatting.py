"""Plain-text rendering for agents and humans. Display only."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from diffdelta_sync import classify
from diffdelta_sync.filters import Selection
from diffdelta_sync.models import FeedItem, Head, SourceInfo
from diffdelta_sync.results import StackDiscovery

NO_ITEMS = "No items found."
NO_MATCHES = "No matching items found."
NO_CHANGES = "No changes since last poll. Feed is up to date."

STATUS_ICONS = {"ok": "✓", "degraded": "⚠"}


def format_item(item: FeedItem, bucket: str) -> str:
    """Render one item as a short indented block.

    Example::

        [FLAGGED] ⚡PATCH_IMMEDIATELY cisa_kev: CVE-2026-1234 in FooLib [risk: 9.8/10]
          Signals: severity:critical(9.8) | 🔴 EXPLOITED
          Source: CISA
          URL: https://example.com/advisory
          Remote code execution in ...
    """
    action = classify.suggested_action(item)
    risk = classify.risk_display(item)

    first = f"[{bucket.upper()}]"
    if action:
        first += f" ⚡{action}"
    first += f" {item.source}: {item.headline}"
    if risk:
        first += f" [risk: {risk}]"

    lines = [first]
    tags = classify.signal_tags(item)
    if tags:
        lines.append(f"  Signals: {' | '.join(tags)}")
    authority = classify.evidence_authority(item)
    if authority:
        lines.append(f"  Source: {authority}")
    if item.url:
        lines.append(f"  URL: {item.url}")
    excerpt = classify.display_excerpt(item)
    if excerpt:
        lines.append(f"  {excerpt}")
    return "\n".join(lines)


def format_items(
    selection: Selection,
    narrative: Optional[str] = None,
    feed_empty: bool = False,
) -> str:
    """Render a filtered selection, with the feed narrative on top if any.

    An empty selection renders as "No items found." when the feed itself
    had no items, and "No matching items found." when filters removed them.
    """
    if selection:
        blocks = [format_item(item, bucket) for item, bucket in selection]
        text = "\n".join([f"{len(selection)} item(s) found:", ""] + blocks)
    else:
        text = NO_ITEMS if feed_empty else NO_MATCHES

    if narrative:
        text = f"Summary: {narrative}\n\n{text}"
    return text


def no_changes_message(head: Head, source_id: Optional[str] = None) -> str:
    """Status line for a poll whose head cursor matched the stored one."""
    if source_id:
        return f"No changes in {source_id} since last poll."
    if head.all_clear:
        return (
            f"No changes since last poll. {head.sources_checked} sources verified, "
            f"all clear (confidence: {head.all_clear_confidence})."
        )
    return NO_CHANGES


def tag_histogram(sources: Sequence[SourceInfo]) -> List[tuple]:
    """``(tag, count)`` pairs, most common first; ties keep first-seen order."""
    counts: Dict[str, int] = {}
    for s in sources:
        for t in s.tags:
            counts[t] = counts.get(t, 0) + 1
    return sorted(counts.items(), key=lambda kv: -kv[1])


def format_sources(sources: Sequence[SourceInfo]) -> str:
    lines = [f"{len(sources)} intelligence sources available:", "", "Tags:"]
    lines += [f"  {tag}: {count} sources" for tag, count in tag_histogram(sources)]
    lines += ["", "Sources:"]
    for s in sources:
        icon = STATUS_ICONS.get(s.status, "✗")
        desc = f": {s.description}" if s.description else ""
        lines.append(f"{icon} {s.source_id} [{', '.join(s.tags)}] — {s.name}{desc}")
    return "\n".join(lines)


def format_stack_discovery(discovery: StackDiscovery) -> str:
    sources = discovery.sources
    lines = [
        "Stack Discovery Results:",
        f"  Matched: {len(discovery.matched)}/{len(discovery.requested)} dependencies",
        f"  Total sources to monitor: {len(sources)}",
        "",
    ]
    if discovery.matched:
        lines.append("Matched dependencies:")
        for m in discovery.matched:
            desc = f" ({m.description})" if m.description else ""
            lines.append(f"  {m.dependency} → [{', '.join(m.sources)}]{desc}")
        lines.append("")
    if discovery.unmatched:
        lines.append(f"Unmatched (not in our graph yet): {', '.join(discovery.unmatched)}")
        lines.append("")
    lines.append(f"Sources to watch: {', '.join(sources)}")
    lines.append("")
    lines.append("Tip: poll the global feed with a sources filter, or poll each source directly.")
    return "\n".join(lines)
