"""Signal extraction for feed items.

Every function here is a pure function of a ``FeedItem``: the same item
always yields the same tags, risk string and excerpt.
"""

from __future__ import annotations

from typing import List, Optional

from diffdelta_sync.models import FeedItem

EXCERPT_LIMIT = 200
EXPLOITED_MARKER = "🔴 EXPLOITED"


def _num(value: float) -> str:
    """Render a number the way it appears in the feed (9.0 -> "9")."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def risk_display(item: FeedItem) -> Optional[str]:
    """Risk on the 0–10 display scale, e.g. ``"9.8/10"``."""
    if item.risk is None:
        return None
    return f"{item.risk.out_of_ten:.1f}/10"


def signal_tags(item: FeedItem) -> List[str]:
    """Compact tags for each signal present on the item, in fixed order."""
    signals = item.signals
    tags: List[str] = []

    sev = signals.severity
    if sev is not None:
        cvss = f"({_num(sev.cvss)})" if sev.cvss else ""
        tags.append(f"severity:{sev.level or '?'}{cvss}")
        if sev.exploited:
            tags.append(EXPLOITED_MARKER)

    rel = signals.release
    if rel is not None:
        tag = f"release:{rel.version or '?'}"
        if rel.security_patch:
            tag += " [SECURITY]"
        if rel.prerelease:
            tag += " [pre]"
        tags.append(tag)

    inc = signals.incident
    if inc is not None:
        impact = f"({inc.impact})" if inc.impact else ""
        tags.append(f"incident:{inc.status or '?'}{impact}")

    dep = signals.deprecation
    if dep is not None:
        affects = f" affects:[{','.join(dep.affects)}]" if dep.affects else ""
        tags.append(f"deprecation:{dep.type or '?'}{affects}")

    return tags


def display_excerpt(item: FeedItem, limit: int = EXCERPT_LIMIT) -> str:
    # Hard cut at the display budget, no ellipsis.
    return item.excerpt[:limit]


def suggested_action(item: FeedItem) -> Optional[str]:
    """The upstream action code, e.g. ``PATCH_IMMEDIATELY``.

    Returns None when upstream did not assign one; no default is guessed.
    """
    return item.signals.suggested_action


def evidence_authority(item: FeedItem) -> Optional[str]:
    """Who asserted the severity signal (e.g. "NVD"), if known."""
    sev = item.signals.severity
    return sev.authority if sev is not None and sev.authority else None
