"""HTTP plumbing shared by the upload, summarize, history and delete calls.

Backend calls send JSON with an ``Authorization: Bearer`` header. The direct
storage PUT goes to a pre-signed URL and carries only ``Content-Type``.
Requests are issued exactly once; callers decide what a non-2xx status means.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from summarizer_client.auth import Credential

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin async wrapper around one ``httpx.AsyncClient``.

    Pass *client* to reuse an existing client (tests bind one to an ASGI app);
    otherwise one is created and closed by ``aclose()``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def post_json(
        self, path: str, payload: dict[str, Any], credential: Credential
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json", **credential.authorization_header()}
        logger.debug("POST %s", path)
        return await self._client.post(self._url(path), json=payload, headers=headers)

    async def get_json(
        self, path: str, credential: Credential, *, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        logger.debug("GET %s params=%s", path, params)
        return await self._client.get(
            self._url(path), params=params, headers=credential.authorization_header()
        )

    async def put_bytes(self, url: str, data: bytes, content_type: str) -> httpx.Response:
        # The pre-signed URL embeds its own signature; no bearer header here.
        logger.debug("PUT %d bytes to storage", len(data))
        return await self._client.put(url, content=data, headers={"Content-Type": content_type})


def is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


def response_text(resp: httpx.Response) -> str:
    """Best-effort body text for error diagnostics."""
    try:
        return resp.text
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        return ""
