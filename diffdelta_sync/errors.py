"""Errors raised when a feed document cannot be fetched."""

from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """Base class for every failure of a single feed fetch.

    Attributes:
        url: The URL that was being fetched.
    """

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """The connection could not be established or was dropped."""


class FetchTimeoutError(FetchError, TimeoutError):
    """The request did not complete within the configured timeout."""


class HttpError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, reason: str = "", url: str = "") -> None:
        super().__init__(f"HTTP {status}: {reason}".rstrip(": "), url=url)
        self.status = status
        self.reason = reason


class ParseError(FetchError, ValueError):
    """The response body was not a JSON document."""

    def __init__(self, message: str, url: str = "", content_type: Optional[str] = None) -> None:
        super().__init__(message, url=url)
        self.content_type = content_type
