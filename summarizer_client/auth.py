"""Bearer credential lookup for authenticated backend calls.

The identity provider lives outside this package. A ``TokenSource`` is the
seam to it: every authenticated operation starts with
``await source.get_credential()``, which either yields a ``Credential`` or
raises ``AuthError``.

Three sources are provided:

1. ``StaticTokenSource``: a fixed token, e.g. from ``SUMMARIZER_TOKEN``.
2. ``FileTokenSource``: re-reads a token file on every call so an external
   login tool can keep it fresh.
3. ``CachedTokenSource``: wraps an async provider callback and caches its
   token until 5 minutes before expiry.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from summarizer_client.config import ClientConfig
from summarizer_client.errors import AuthError

logger = logging.getLogger(__name__)

# Refresh this many seconds before the token actually expires.
_REFRESH_MARGIN_SECONDS = 300  # 5 minutes


@dataclass(frozen=True)
class Credential:
    """An opaque bearer token, held only for one request chain."""

    token: str = field(repr=False)
    expires_at: float | None = None  # unix timestamp, None when unknown

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class TokenSource(Protocol):
    async def get_credential(self) -> Credential: ...


def decode_jwt_exp(token: str) -> float:
    """Return the ``exp`` claim of a JWT-shaped bearer token.

    The signature is not checked; the backend verifies tokens and this value
    only decides when a cached credential is too old to send. Any token that
    does not carry a numeric ``exp`` in a JSON object payload raises
    ValueError, so callers can treat it as opaque.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("Token is not a valid JWT (expected 3 parts)")

    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    claims = json.loads(base64.urlsafe_b64decode(segment))
    if not isinstance(claims, dict):
        raise ValueError("JWT payload is not a JSON object")

    exp = claims.get("exp")
    if exp is None:
        raise ValueError("JWT payload missing 'exp' claim")
    if isinstance(exp, bool) or not isinstance(exp, (int, float, str)):
        raise ValueError(f"JWT 'exp' claim is not numeric: {exp!r}")
    return float(exp)


def credential_from_token(token: str) -> Credential:
    """Wrap *token*, recording its expiry when it is a JWT.

    Opaque (non-JWT) tokens get no expiry; the backend is the judge.
    """
    try:
        expires_at: float | None = decode_jwt_exp(token)
    except ValueError:
        expires_at = None
    return Credential(token=token, expires_at=expires_at)


def _checked(token: str | None, *, origin: str) -> Credential:
    token = (token or "").strip()
    if not token:
        raise AuthError(f"No bearer token available from {origin}")
    credential = credential_from_token(token)
    if credential.is_expired():
        raise AuthError(f"Bearer token from {origin} has expired")
    return credential


class StaticTokenSource:
    def __init__(self, token: str | None) -> None:
        self._token = token

    async def get_credential(self) -> Credential:
        return _checked(self._token, origin="configuration")


class FileTokenSource:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def get_credential(self) -> Credential:
        try:
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except OSError as e:
            raise AuthError(f"Could not read token file {self._path}: {e}") from e
        return _checked(raw, origin=str(self._path))


class CachedTokenSource:
    """Cache tokens minted by an async identity-provider callback.

    The token is refreshed 5 minutes before expiry. If the refresh fails but
    the cached token hasn't actually expired yet, the stale token is returned
    as a fallback.
    """

    def __init__(self, fetch: Callable[[], Awaitable[str]]) -> None:
        self._fetch = fetch
        self._cache: Credential | None = None

    async def get_credential(self) -> Credential:
        now = time.time()
        cached = self._cache

        # Return cached token if still fresh (not within refresh margin).
        if cached is not None and (
            cached.expires_at is None or now < cached.expires_at - _REFRESH_MARGIN_SECONDS
        ):
            return cached

        try:
            token = await self._fetch()
            credential = _checked(token, origin="identity provider")
        except Exception as e:
            logger.warning("Failed to refresh bearer token", exc_info=True)

            # Stale fallback: return the old token if it hasn't truly expired.
            if cached is not None and not cached.is_expired(now):
                logger.info("Using stale cached bearer token (still valid)")
                return cached

            if isinstance(e, AuthError):
                raise
            raise AuthError(f"Identity provider failed: {e}") from e

        self._cache = credential
        return credential

    def clear(self) -> None:
        """Drop the cached token (sign-out)."""
        self._cache = None


def token_source_from_config(cfg: ClientConfig) -> TokenSource:
    if cfg.token_file:
        return FileTokenSource(cfg.token_file)
    return StaticTokenSource(cfg.token)
