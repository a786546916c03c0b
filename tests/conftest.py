"""Shared fixtures: a fake HTTP session routed by URL path."""

import json
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from diffdelta_sync import DiffDeltaSync, Settings

BASE_URL = "https://feed.test"


def make_response(payload: Any, status: int = 200, content_type: str = "application/json") -> MagicMock:
    """A streamed response whose body is served through ``raw.read1``.

    ``payload`` is JSON-encoded unless it is already ``bytes``.
    """
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    chunks = [body[:8], body[8:]]

    resp = MagicMock()
    resp.status_code = status
    resp.reason = "OK" if status < 400 else "Service Unavailable"
    resp.headers = {"Content-Type": content_type} if content_type else {}
    resp.raw.read1.side_effect = lambda *args, **kwargs: chunks.pop(0) if chunks else b""
    return resp


def head_doc(cursor: str, **extra) -> Dict[str, Any]:
    doc = {
        "cursor": cursor,
        "generated_at": "2026-10-18T09:00:00Z",
        "ttl_sec": 900,
        "counts": {"new": 0, "updated": 0, "removed": 0, "flagged": 0},
        "sources_checked": 40,
        "sources_ok": 40,
    }
    doc.update(extra)
    return doc


def feed_doc(cursor: str, narrative: str = "", **buckets) -> Dict[str, Any]:
    doc = {"cursor": cursor, "buckets": buckets}
    if narrative:
        doc["batch_narrative"] = narrative
    return doc


def item_doc(source: str, headline: str, **extra) -> Dict[str, Any]:
    doc = {"source": source, "id": f"{source}-{headline}", "headline": headline}
    doc.update(extra)
    return doc


@pytest.fixture
def routes() -> Dict[str, Any]:
    """Path -> JSON payload, response mock, exception to raise, or a callable returning a response."""
    return {}


@pytest.fixture
def session(routes):
    session = MagicMock()
    session.headers = {}

    def get(url, timeout=None, stream=False):
        path = url[len(BASE_URL):]
        route = routes.get(path)
        if route is None:
            return make_response({}, status=404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, MagicMock):
            return route
        if callable(route):
            return route()
        return make_response(route)

    session.get.side_effect = get
    return session


@pytest.fixture
def client(session) -> DiffDeltaSync:
    return DiffDeltaSync(settings=Settings(base_url=BASE_URL), session=session)


def fetched_paths(session) -> List[str]:
    return [c.args[0][len(BASE_URL):] for c in session.get.call_args_list]
