"""Environment-variable-driven configuration for the summarizer client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse

# 4.5 MiB, the largest payload the upload endpoint accepts.
DEFAULT_MAX_UPLOAD_BYTES = 4_718_592


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class ClientConfig:
    # Backend
    api_base_url: str
    http_timeout_seconds: float

    # Upload
    max_upload_bytes: int

    # History
    history_limit: int
    history_refresh_delay: float  # settle time before listing a new record
    ready_display_seconds: float  # how long Ready is shown before Idle

    # Credentials (at most one)
    token: str | None
    token_file: str | None

    # Logging
    log_json: bool

    @classmethod
    def from_env(cls, *, base_url: str | None = None) -> ClientConfig:
        base_url = base_url or os.getenv("SUMMARIZER_API_BASE_URL")
        if not base_url:
            raise ValueError("SUMMARIZER_API_BASE_URL is required")

        return cls(
            api_base_url=base_url.rstrip("/"),
            http_timeout_seconds=_get_float("SUMMARIZER_HTTP_TIMEOUT_SECONDS", 30.0),
            max_upload_bytes=_get_int("SUMMARIZER_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            history_limit=_get_int("SUMMARIZER_HISTORY_LIMIT", 20),
            history_refresh_delay=_get_float("SUMMARIZER_HISTORY_REFRESH_DELAY_SECONDS", 1.5),
            ready_display_seconds=_get_float("SUMMARIZER_READY_DISPLAY_SECONDS", 3.0),
            token=os.getenv("SUMMARIZER_TOKEN") or None,
            token_file=os.getenv("SUMMARIZER_TOKEN_FILE") or None,
            log_json=_get_bool("SUMMARIZER_LOG_JSON", False),
        )

    def validate(self) -> None:
        parsed = urlparse(self.api_base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"SUMMARIZER_API_BASE_URL is not an http(s) URL: {self.api_base_url!r}")

        if self.max_upload_bytes < 1:
            raise ValueError("SUMMARIZER_MAX_UPLOAD_BYTES must be >= 1")
        if self.history_limit < 1:
            raise ValueError("SUMMARIZER_HISTORY_LIMIT must be >= 1")
        if self.history_refresh_delay < 0:
            raise ValueError("SUMMARIZER_HISTORY_REFRESH_DELAY_SECONDS must be >= 0")
        if self.ready_display_seconds < 0:
            raise ValueError("SUMMARIZER_READY_DISPLAY_SECONDS must be >= 0")
        if self.http_timeout_seconds <= 0:
            raise ValueError("SUMMARIZER_HTTP_TIMEOUT_SECONDS must be > 0")

        if self.token and self.token_file:
            raise ValueError("Set only one of SUMMARIZER_TOKEN and SUMMARIZER_TOKEN_FILE")
