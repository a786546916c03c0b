"""HTTP transport — one bounded GET per call, returning parsed JSON."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

import requests
import urllib3

from diffdelta_sync.config import Settings
from diffdelta_sync.errors import FetchTimeoutError, HttpError, NetworkError, ParseError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class Fetcher:
    """Fetches DiffDelta JSON documents.

    The fetcher holds a ``requests.Session`` with the client identification
    and API key headers already set. It keeps no other state, so independent
    URLs can be fetched from several threads. Failed requests are never
    retried.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = settings.user_agent
        self._session.headers["Accept"] = "application/json"
        if settings.api_key:
            self._session.headers["X-DiffDelta-Key"] = settings.api_key

    def url(self, path: str) -> str:
        """Resolve a path against the configured base URL."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.settings.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str) -> Dict[str, Any]:
        """GET a URL (or base-relative path) and return the decoded object.

        ``settings.timeout`` bounds the whole request, body included: a
        server that trickles its reply is cut off once the deadline passes.

        Raises:
            FetchTimeoutError: The request exceeded ``settings.timeout``.
            NetworkError: The connection failed.
            HttpError: The server returned a non-2xx status.
            ParseError: The body is not a JSON object.
        """
        url = self.url(path)
        timeout = self.settings.timeout
        deadline = time.monotonic() + timeout
        logger.debug("GET %s", url)
        try:
            resp = self._session.get(url, timeout=timeout, stream=True)
        except requests.exceptions.Timeout as e:
            raise FetchTimeoutError(f"Request timed out after {timeout}s", url=url) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}", url=url) from e

        try:
            if not 200 <= resp.status_code < 300:
                raise HttpError(resp.status_code, resp.reason or "", url=url)

            content_type = resp.headers.get("Content-Type", "")
            if content_type and "json" not in content_type.lower():
                raise ParseError(
                    f"Expected a JSON response, got {content_type!r}",
                    url=url,
                    content_type=content_type,
                )
            body = self._read_body(resp, url, deadline)
        finally:
            resp.close()

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ParseError(f"Malformed JSON body: {e}", url=url, content_type=content_type) from e

        if not isinstance(data, dict):
            raise ParseError(
                f"Expected a JSON object, got {type(data).__name__}",
                url=url,
                content_type=content_type,
            )
        return data

    def _read_body(self, resp: requests.Response, url: str, deadline: float) -> bytes:
        # read1 does at most one socket read, so the deadline is checked
        # between every packet rather than every full chunk.
        chunks = []
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise FetchTimeoutError(
                    f"Response body not received within {self.settings.timeout}s", url=url
                )
            _limit_socket_wait(resp, remaining)
            try:
                chunk = resp.raw.read1(READ_CHUNK_SIZE, decode_content=True)
            except urllib3.exceptions.TimeoutError as e:
                raise FetchTimeoutError(
                    f"Response body not received within {self.settings.timeout}s", url=url
                ) from e
            except (urllib3.exceptions.HTTPError, OSError) as e:
                raise NetworkError(f"Connection dropped while reading: {e}", url=url) from e
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    def close(self) -> None:
        self._session.close()


def _limit_socket_wait(resp: requests.Response, remaining: float) -> None:
    """Shrink the socket read timeout to the time left before the deadline."""
    sock = getattr(getattr(resp.raw, "connection", None), "sock", None)
    if sock is not None:
        sock.settimeout(remaining)
