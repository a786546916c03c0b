"""Tests for bucket, source and tag filtering."""

import pytest

from diffdelta_sync.errors import NetworkError
from diffdelta_sync.filters import FilterEngine, buckets_for
from diffdelta_sync.formatting import format_items
from diffdelta_sync.models import Feed, SourceInfo

TAGS = {"a": ["security"], "b": ["ops"]}


@pytest.fixture
def feed() -> Feed:
    return Feed.from_raw(
        {
            "cursor": "c1",
            "buckets": {
                "new": [
                    {"source": "a", "headline": "X"},
                    {"source": "b", "headline": "Y"},
                ],
            },
        }
    )


def failing_lookup():
    raise NetworkError("sources.json unreachable")


def headlines(selection):
    return [item.headline for item, _ in selection]


def test_buckets_for() -> None:
    assert buckets_for() == ["flagged", "new", "updated"]
    assert buckets_for(include_removed=True) == ["flagged", "new", "updated", "removed"]


def test_source_filter(feed) -> None:
    engine = FilterEngine(lambda: TAGS)

    assert headlines(engine.select(feed, sources=["a"])) == ["X"]


def test_tag_filter(feed) -> None:
    engine = FilterEngine(lambda: TAGS)

    assert headlines(engine.select(feed, tags=["ops"])) == ["Y"]


def test_filters_compose_with_and(feed) -> None:
    engine = FilterEngine(lambda: TAGS)

    selection = engine.select(feed, sources=["a"], tags=["ops"])

    assert selection == []
    assert format_items(selection, feed_empty=not feed.items) == "No matching items found."


def test_source_without_metadata_fails_tag_filter(feed) -> None:
    engine = FilterEngine(lambda: {"a": ["security"]})

    assert headlines(engine.select(feed, tags=["security", "ops"])) == ["X"]


def test_tag_lookup_only_when_needed(feed) -> None:
    calls = []

    def lookup():
        calls.append(1)
        return TAGS

    engine = FilterEngine(lookup)
    engine.select(feed)
    engine.select(feed, tags=[])
    assert calls == []

    engine.select(feed, tags=["ops"])
    assert calls == [1]


def test_failed_lookup_skips_tag_filter(feed) -> None:
    degraded = FilterEngine(failing_lookup)
    unfiltered = FilterEngine(lambda: TAGS)

    assert headlines(degraded.select(feed, tags=["ops"])) == headlines(unfiltered.select(feed))


def test_failed_lookup_keeps_source_filter(feed) -> None:
    engine = FilterEngine(failing_lookup)

    assert headlines(engine.select(feed, sources=["b"], tags=["security"])) == ["Y"]


def test_failed_lookup_logs_warning(feed, caplog) -> None:
    engine = FilterEngine(failing_lookup)

    with caplog.at_level("WARNING", logger="diffdelta_sync.filters"):
        engine.select(feed, tags=["ops"])

    assert "skipping tag filter" in caplog.text


def test_strict_policy_propagates(feed) -> None:
    engine = FilterEngine(failing_lookup, degrade_on_metadata_failure=False)

    with pytest.raises(NetworkError):
        engine.select(feed, tags=["ops"])


def test_order_is_bucket_then_item() -> None:
    feed = Feed.from_raw(
        {
            "cursor": "c1",
            "buckets": {
                "updated": [{"source": "a", "headline": "U1"}, {"source": "a", "headline": "U2"}],
                "removed": [{"source": "a", "headline": "R1"}],
                "new": [{"source": "a", "headline": "N1"}],
                "flagged": [{"source": "a", "headline": "F1"}, {"source": "a", "headline": "F2"}],
            },
        }
    )
    engine = FilterEngine(lambda: TAGS)

    selection = engine.select(feed, include_removed=True)

    assert [(i.headline, b) for i, b in selection] == [
        ("F1", "flagged"),
        ("F2", "flagged"),
        ("N1", "new"),
        ("U1", "updated"),
        ("U2", "updated"),
        ("R1", "removed"),
    ]
    assert "R1" not in headlines(engine.select(feed))


def test_string_tag_does_not_match_single_letters(feed) -> None:
    info = SourceInfo.from_raw({"source_id": "a", "name": "A", "tags": "security"})
    engine = FilterEngine(lambda: {info.source_id: info.tags})

    assert headlines(engine.select(feed, tags=["s"])) == []
    assert headlines(engine.select(feed, tags=["security"])) == ["X"]
