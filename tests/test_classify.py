"""Tests for signal extraction."""

from diffdelta_sync import classify
from diffdelta_sync.models import FeedItem


def test_risk_renders_same_for_both_shapes() -> None:
    modern = FeedItem.from_raw({"risk": {"score": 0.98}})
    legacy = FeedItem.from_raw({"risk_score": 9.8})

    assert classify.risk_display(modern) == "9.8/10"
    assert classify.risk_display(legacy) == "9.8/10"


def test_risk_absent() -> None:
    assert classify.risk_display(FeedItem.from_raw({})) is None


def test_severity_tags() -> None:
    item = FeedItem.from_raw(
        {"signals": {"severity": {"level": "critical", "cvss": 9.8, "exploited": True}}}
    )

    assert classify.signal_tags(item) == ["severity:critical(9.8)", "🔴 EXPLOITED"]


def test_severity_without_cvss() -> None:
    item = FeedItem.from_raw({"signals": {"severity": {"level": "high", "cvss": 10.0}}})
    bare = FeedItem.from_raw({"signals": {"severity": {"level": "low"}}})

    assert classify.signal_tags(item) == ["severity:high(10)"]
    assert classify.signal_tags(bare) == ["severity:low"]


def test_release_tags() -> None:
    patch = FeedItem.from_raw(
        {"signals": {"release": {"version": "1.2.3", "security_patch": True, "prerelease": True}}}
    )
    unknown = FeedItem.from_raw({"signals": {"release": {}}})

    assert classify.signal_tags(patch) == ["release:1.2.3 [SECURITY] [pre]"]
    assert classify.signal_tags(unknown) == ["release:?"]


def test_incident_and_deprecation_tags() -> None:
    item = FeedItem.from_raw(
        {
            "signals": {
                "incident": {"status": "investigating", "impact": "major"},
                "deprecation": {"type": "sunset", "affects": ["v1", "v2"]},
            }
        }
    )
    plain = FeedItem.from_raw(
        {"signals": {"incident": {"status": "resolved"}, "deprecation": {"type": "breaking"}}}
    )

    assert classify.signal_tags(item) == [
        "incident:investigating(major)",
        "deprecation:sunset affects:[v1,v2]",
    ]
    assert classify.signal_tags(plain) == ["incident:resolved", "deprecation:breaking"]


def test_no_signals_no_tags() -> None:
    assert classify.signal_tags(FeedItem.from_raw({"source": "a"})) == []


def test_excerpt_truncated_to_exact_length() -> None:
    text = "word " * 50
    assert len(text) == 250
    item = FeedItem.from_raw({"content": {"excerpt_text": text}})

    excerpt = classify.display_excerpt(item)

    assert excerpt == text[:200]
    assert len(excerpt) == 200
    assert not excerpt.endswith("...")
    assert len(item.excerpt) == 250


def test_short_excerpt_untouched() -> None:
    item = FeedItem.from_raw({"content": "short"})

    assert classify.display_excerpt(item) == "short"


def test_suggested_action_passthrough() -> None:
    flagged = FeedItem.from_raw({"signals": {"suggested_action": "PATCH_SOON"}})
    silent = FeedItem.from_raw({"signals": {"severity": {"level": "critical"}}})

    assert classify.suggested_action(flagged) == "PATCH_SOON"
    assert classify.suggested_action(silent) is None


def test_evidence_authority() -> None:
    item = FeedItem.from_raw(
        {"signals": {"severity": {"level": "high", "provenance": {"authority": "NVD"}}}}
    )

    assert classify.evidence_authority(item) == "NVD"
    assert classify.evidence_authority(FeedItem.from_raw({})) is None
