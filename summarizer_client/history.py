"""Locally cached history of past summaries.

``refresh`` replaces the cache wholesale with the backend listing; it never
merges. ``remove`` is a local hint used after a successful delete. When the
two race, whichever completes last wins, and the next refresh is the truth.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from summarizer_client.api import BackendClient, is_success, response_text
from summarizer_client.auth import Credential
from summarizer_client.errors import HistoryError
from summarizer_client.models import HistoryResponse
from summarizer_client.types import HistoryEntry, make_preview

logger = logging.getLogger(__name__)


class HistoryStore:
    def __init__(self, backend: BackendClient, *, limit: int = 20) -> None:
        self._backend = backend
        self._limit = limit
        self._entries: list[HistoryEntry] = []

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        """Cached entries, most recent first as the backend returned them."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_key: object) -> bool:
        return any(e.file_key == file_key for e in self._entries)

    async def refresh(self, credential: Credential) -> tuple[HistoryEntry, ...]:
        """Fetch up to ``limit`` records and replace the cache with them.

        Raises HistoryError on failure; the previous cache is left as it was.
        """
        try:
            resp = await self._backend.get_json(
                "/history", credential, params={"limit": self._limit}
            )
        except httpx.HTTPError as e:
            raise HistoryError(None, message=f"History API error: {e}") from e

        if not is_success(resp):
            logger.warning("History refresh failed: status=%d", resp.status_code)
            raise HistoryError(resp.status_code, response_text(resp))

        try:
            data = HistoryResponse.model_validate_json(resp.content)
        except PydanticValidationError as e:
            raise HistoryError(
                resp.status_code, response_text(resp), message="History API error: malformed response"
            ) from e

        self._entries = [
            HistoryEntry(
                file_key=item.file_key,
                created_at=item.created_at,
                preview=item.summary_preview or make_preview(item.summary or ""),
                summary=item.summary,
            )
            for item in data.items[: self._limit]
        ]
        logger.info("History refreshed: %d entries", len(self._entries))
        return self.entries

    def get(self, file_key: str) -> HistoryEntry | None:
        return next((e for e in self._entries if e.file_key == file_key), None)

    def find_preview(self, file_key: str) -> str | None:
        entry = self.get(file_key)
        return entry.preview if entry is not None else None

    def remove(self, file_key: str) -> bool:
        """Drop *file_key* from the cache. Returns False if it was not cached."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.file_key != file_key]
        return len(self._entries) != before
