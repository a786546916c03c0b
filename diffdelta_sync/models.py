"""Data models for DiffDelta feeds.

Every model is built from the raw JSON with a ``from_raw`` classmethod.
Optional and legacy payload shapes are resolved there, once, so the rest
of the pipeline only ever sees the normalized fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

BUCKETS = ("flagged", "new", "updated", "removed")


def _count(value: Any) -> int:
    """Coerce a count field to a non-negative int (missing -> 0)."""
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str_list(value: Any) -> List[str]:
    """A list of strings; a bare string is one entry, anything else is empty."""
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return []


@dataclass
class Risk:
    """A risk score normalized to the 0.0–1.0 range.

    Attributes:
        score: Normalized score.
        reasons: Upstream explanation strings, if any.
        legacy: True when the score came from the old 0–10 ``risk_score``.
    """

    score: float
    reasons: List[str] = field(default_factory=list)
    legacy: bool = False

    @classmethod
    def from_item(cls, data: Dict[str, Any]) -> Optional["Risk"]:
        """Read ``risk.score`` (0–1), else legacy ``risk_score`` (0–10)."""
        modern = _mapping(data.get("risk"))
        score = _number(modern.get("score"))
        if score is not None:
            return cls(score=score, reasons=_str_list(modern.get("reasons")))

        legacy = _number(data.get("risk_score"))
        if legacy is not None:
            return cls(score=legacy / 10, legacy=True)
        return None

    @property
    def out_of_ten(self) -> float:
        return self.score * 10


@dataclass
class Severity:
    level: Optional[str] = None
    cvss: Optional[float] = None
    exploited: bool = False
    authority: Optional[str] = None
    evidence_url: Optional[str] = None

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Severity":
        provenance = _mapping(data.get("provenance"))
        return cls(
            level=data.get("level"),
            cvss=_number(data.get("cvss")),
            exploited=bool(data.get("exploited", False)),
            authority=provenance.get("authority"),
            evidence_url=provenance.get("evidence_url"),
        )


@dataclass
class Release:
    version: Optional[str] = None
    prerelease: bool = False
    security_patch: bool = False

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Release":
        return cls(
            version=data.get("version"),
            prerelease=bool(data.get("prerelease", False)),
            security_patch=bool(data.get("security_patch", False)),
        )


@dataclass
class Incident:
    status: Optional[str] = None
    impact: Optional[str] = None

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Incident":
        return cls(status=data.get("status"), impact=data.get("impact"))


@dataclass
class Deprecation:
    type: Optional[str] = None
    affects: List[str] = field(default_factory=list)
    confidence: Optional[str] = None

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Deprecation":
        return cls(
            type=data.get("type"),
            affects=_str_list(data.get("affects")),
            confidence=data.get("confidence"),
        )


@dataclass
class Signals:
    """Structured evidence attached to an item. Every part is optional."""

    severity: Optional[Severity] = None
    release: Optional[Release] = None
    incident: Optional[Incident] = None
    deprecation: Optional[Deprecation] = None
    suggested_action: Optional[str] = None

    @classmethod
    def from_raw(cls, data: Any) -> "Signals":
        data = _mapping(data)

        def part(name, model):
            raw = data.get(name)
            return model.from_raw(raw) if isinstance(raw, dict) else None

        return cls(
            severity=part("severity", Severity),
            release=part("release", Release),
            incident=part("incident", Incident),
            deprecation=part("deprecation", Deprecation),
            suggested_action=data.get("suggested_action") or None,
        )


@dataclass
class FeedItem:
    """A single item from a DiffDelta feed.

    Attributes:
        source: Source identifier (e.g. "cisa_kev", "nist_nvd").
        id: Unique item ID within the source.
        headline: Human/agent-readable headline.
        url: Link to the original source.
        excerpt: Full summary text extracted from the source.
        published_at: When the item was originally published.
        updated_at: When the item was last updated.
        bucket: Which change bucket: "flagged", "new", "updated" or "removed".
        risk: Normalized risk score, or None if the item carries none.
        signals: Severity, release, incident and deprecation evidence.
        provenance: Raw provenance data (fetched_at, evidence_urls, content_hash).
        raw: The full raw item dict from the feed.
    """

    source: str
    id: str
    headline: str
    url: str = ""
    excerpt: str = ""
    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    bucket: str = "new"
    risk: Optional[Risk] = None
    signals: Signals = field(default_factory=Signals)
    provenance: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Dict[str, Any], bucket: str = "new") -> "FeedItem":
        """Create a FeedItem from a raw feed item dict."""
        content = data.get("content")
        excerpt = ""
        if isinstance(content, dict):
            for key in ("excerpt_text", "summary"):
                value = content.get(key)
                if isinstance(value, str) and value:
                    excerpt = value
                    break
        elif isinstance(content, str):
            excerpt = content

        return cls(
            source=data.get("source") or "",
            id=data.get("id") or "",
            headline=data.get("headline") or "",
            url=data.get("url") or "",
            excerpt=excerpt,
            published_at=data.get("published_at"),
            updated_at=data.get("updated_at"),
            bucket=bucket,
            risk=Risk.from_item(data),
            signals=Signals.from_raw(data.get("signals")),
            provenance=_mapping(data.get("provenance")),
            raw=data,
        )

    def __repr__(self) -> str:
        return f"FeedItem(source={self.source!r}, id={self.id!r}, headline={self.headline!r}, bucket={self.bucket!r})"


@dataclass
class Counts:
    new: int = 0
    updated: int = 0
    removed: int = 0
    flagged: int = 0

    @classmethod
    def from_raw(cls, data: Any) -> "Counts":
        data = _mapping(data)
        return cls(
            new=_count(data.get("new")),
            updated=_count(data.get("updated")),
            removed=_count(data.get("removed")),
            flagged=_count(data.get("flagged")),
        )

    def to_dict(self) -> Dict[str, int]:
        return {"new": self.new, "updated": self.updated, "removed": self.removed, "flagged": self.flagged}


@dataclass
class Head:
    """The lightweight head pointer for change detection.

    Attributes:
        cursor: Opaque cursor string for change detection.
        hash: Content hash of the latest feed.
        changed: Whether content changed in the latest generation (upstream flag).
        generated_at: When this head was generated.
        ttl_sec: Recommended polling interval in seconds.
        counts: Items per bucket in the latest feed.
        sources_checked: Sources polled by the last engine run.
        sources_ok: Sources that answered successfully.
        all_clear: Upstream "verified silence" flag.
        all_clear_confidence: Confidence in ``all_clear``, if reported.
        freshness: Optional per-source freshness details.
    """

    cursor: str
    hash: str = ""
    changed: Optional[bool] = None
    generated_at: str = ""
    ttl_sec: int = 900
    counts: Counts = field(default_factory=Counts)
    sources_checked: int = 0
    sources_ok: int = 0
    all_clear: Optional[bool] = None
    all_clear_confidence: Optional[float] = None
    freshness: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Head":
        confidence = data.get("all_clear_confidence")
        if confidence is None:
            confidence = data.get("confidence")
        freshness = data.get("freshness")
        return cls(
            cursor=data.get("cursor") or "",
            hash=data.get("hash") or "",
            changed=data.get("changed"),
            generated_at=data.get("generated_at") or "",
            ttl_sec=data.get("ttl_sec", 900),
            counts=Counts.from_raw(data.get("counts")),
            sources_checked=_count(data.get("sources_checked")),
            sources_ok=_count(data.get("sources_ok")),
            all_clear=data.get("all_clear"),
            all_clear_confidence=confidence,
            freshness=freshness if isinstance(freshness, dict) else None,
            raw=data,
        )


@dataclass
class Feed:
    """A full DiffDelta feed response.

    Attributes:
        cursor: The new cursor (save this for next poll).
        prev_cursor: The previous cursor.
        source_id: Source ID (if per-source feed) or "global".
        generated_at: When this feed was generated.
        buckets: Items per bucket, keyed by every name in ``BUCKETS``.
        narrative: Human-readable summary of what changed.
        raw: The full raw feed dict.
    """

    cursor: str
    prev_cursor: str = ""
    source_id: str = ""
    generated_at: str = ""
    buckets: Dict[str, List[FeedItem]] = field(default_factory=lambda: {b: [] for b in BUCKETS})
    narrative: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Feed":
        raw_buckets = _mapping(data.get("buckets"))
        buckets = {
            name: [FeedItem.from_raw(i, name) for i in raw_buckets.get(name) or [] if isinstance(i, dict)]
            for name in BUCKETS
        }
        return cls(
            cursor=data.get("cursor") or "",
            prev_cursor=data.get("prev_cursor") or "",
            source_id=data.get("source_id") or "",
            generated_at=data.get("generated_at") or "",
            buckets=buckets,
            narrative=data.get("batch_narrative") or "",
            raw=data,
        )

    @property
    def flagged(self) -> List[FeedItem]:
        return self.buckets.get("flagged", [])

    @property
    def new(self) -> List[FeedItem]:
        return self.buckets.get("new", [])

    @property
    def updated(self) -> List[FeedItem]:
        return self.buckets.get("updated", [])

    @property
    def removed(self) -> List[FeedItem]:
        return self.buckets.get("removed", [])

    def iter_buckets(self) -> Iterator[Tuple[str, List[FeedItem]]]:
        """Yield ``(bucket, items)`` in priority order, flagged first."""
        for name in BUCKETS:
            yield name, self.buckets.get(name, [])

    @property
    def items(self) -> List[FeedItem]:
        """All items across all buckets, in priority order."""
        return [item for _, items in self.iter_buckets() for item in items]


@dataclass
class SourceInfo:
    """Metadata about an available DiffDelta source.

    Attributes:
        source_id: Unique source identifier (e.g. "cisa_kev").
        name: Human-readable display name.
        tags: List of tags (e.g. ["security"]).
        description: Brief description of the source.
        homepage: URL of the source's homepage.
        enabled: Whether the source is currently active.
        status: Health status ("ok", "degraded", "error").
        head_url: Path to the source's head.json.
        latest_url: Path to the source's latest.json.
    """

    source_id: str
    name: str
    tags: List[str] = field(default_factory=list)
    description: str = ""
    homepage: str = ""
    enabled: bool = True
    status: str = "ok"
    head_url: str = ""
    latest_url: str = ""

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "SourceInfo":
        return cls(
            source_id=data.get("source_id") or "",
            name=data.get("name") or "",
            tags=_str_list(data.get("tags")),
            description=data.get("description") or "",
            homepage=data.get("homepage") or "",
            enabled=data.get("enabled", True),
            status=data.get("status") or "ok",
            head_url=data.get("head_url") or "",
            latest_url=data.get("latest_url") or "",
        )

    def __repr__(self) -> str:
        return f"SourceInfo(source_id={self.source_id!r}, name={self.name!r}, status={self.status!r})"


@dataclass
class Health:
    """Pipeline health as reported by healthz.json."""

    ok: bool = False
    sources_checked: Optional[int] = None
    sources_ok: Optional[int] = None
    time: Optional[str] = None
    engine_version: Optional[str] = None

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "Health":
        return cls(
            ok=bool(data.get("ok", False)),
            sources_checked=data.get("sources_checked"),
            sources_ok=data.get("sources_ok"),
            time=data.get("time"),
            engine_version=data.get("engine_version"),
        )


@dataclass
class StackEntry:
    sources: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class StackMap:
    """Dependency name -> sources to watch, from stacks.json.

    Both the ``dependencies`` and the older ``dependency_map`` keys are
    accepted, and each entry may be a bare list of source IDs or an object
    with ``sources`` and ``description``.
    """

    entries: Dict[str, StackEntry] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "StackMap":
        deps = _mapping(data.get("dependencies") or data.get("dependency_map"))
        entries = {}
        for name, entry in deps.items():
            if isinstance(entry, list):
                entries[name.lower()] = StackEntry(sources=_str_list(entry))
            elif isinstance(entry, dict):
                entries[name.lower()] = StackEntry(
                    sources=_str_list(entry.get("sources")),
                    description=entry.get("description") or "",
                )
        return cls(entries=entries)

    def lookup(self, dependency: str) -> Optional[StackEntry]:
        """Case-insensitive lookup of a dependency name."""
        return self.entries.get(dependency.lower())
