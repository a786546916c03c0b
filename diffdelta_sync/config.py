"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "https://diffdelta.io"
DEFAULT_TIMEOUT = 15.0  # seconds

VERSION = "0.2.0"
USER_AGENT = f"diffdelta-sync/{VERSION}"


@dataclass
class Settings:
    """Connection settings for a DiffDelta feed.

    Attributes:
        base_url: Feed service origin, without trailing slash.
        api_key: Optional Pro/Enterprise key sent as ``X-DiffDelta-Key``.
        timeout: Per-request timeout in seconds.
        user_agent: Client identification header.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if not self.api_key:
            self.api_key = None

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from the environment.

        Reads ``DIFFDELTA_BASE_URL``, ``DIFFDELTA_API_KEY`` (falling back to
        ``DD_API_KEY``) and ``DIFFDELTA_TIMEOUT``. Keyword arguments that are
        not None take precedence over the environment.
        """
        values = {
            "base_url": os.environ.get("DIFFDELTA_BASE_URL") or DEFAULT_BASE_URL,
            "api_key": os.environ.get("DIFFDELTA_API_KEY") or os.environ.get("DD_API_KEY") or None,
            "timeout": _float_env("DIFFDELTA_TIMEOUT", DEFAULT_TIMEOUT),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
