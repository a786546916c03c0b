"""
DiffDelta Sync — incremental, cursor-based consumption of DiffDelta feeds.

    from diffdelta_sync import DiffDeltaSync

    dd = DiffDeltaSync()
    result = dd.poll(tags=["security"])
    print(result.text)

Full docs: https://diffdelta.io/#quickstart
"""

from diffdelta_sync.client import DiffDeltaSync
from diffdelta_sync.config import VERSION, Settings
from diffdelta_sync.cursor import CursorStore
from diffdelta_sync.errors import FetchError, FetchTimeoutError, HttpError, NetworkError, ParseError
from diffdelta_sync.models import Feed, FeedItem, Head, SourceInfo
from diffdelta_sync.results import HeadCheck, HealthCheck, PollResult, StackDiscovery

__version__ = VERSION
__all__ = [
    "DiffDeltaSync",
    "Settings",
    "CursorStore",
    "FetchError",
    "FetchTimeoutError",
    "HttpError",
    "NetworkError",
    "ParseError",
    "Feed",
    "FeedItem",
    "Head",
    "SourceInfo",
    "HeadCheck",
    "HealthCheck",
    "PollResult",
    "StackDiscovery",
]
