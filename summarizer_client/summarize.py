"""Summarization trigger and the holder for the summary currently on display."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import httpx
from pydantic import ValidationError as PydanticValidationError

from summarizer_client.api import BackendClient, is_success, response_text
from summarizer_client.auth import Credential
from summarizer_client.errors import SummarizeError
from summarizer_client.models import SummarizeRequest, SummarizeResponse
from summarizer_client.types import HistoryEntry, SummaryRecord, make_preview

logger = logging.getLogger(__name__)

NO_SUMMARY_TEXT = "No summary returned."


class SummarizationTrigger:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def summarize(self, file_key: str, credential: Credential) -> SummaryRecord:
        """Request a summary for an already-uploaded object.

        Callers must only pass a fileKey whose transfer has succeeded; no
        check is made here.
        """
        body = SummarizeRequest(file_key=file_key)
        try:
            resp = await self._backend.post_json(
                "/summarize", body.model_dump(by_alias=True), credential
            )
        except httpx.HTTPError as e:
            raise SummarizeError(None, message=f"Summarize API error: {e}") from e

        text = response_text(resp)
        if not is_success(resp):
            logger.warning("Summarize failed: status=%d fileKey=%s", resp.status_code, file_key)
            raise SummarizeError(resp.status_code, text)

        try:
            data = SummarizeResponse.model_validate_json(resp.content)
        except PydanticValidationError as e:
            raise SummarizeError(
                resp.status_code, text, message="Summarize API error: malformed response"
            ) from e

        summary = data.summary or NO_SUMMARY_TEXT
        logger.info("Summary generated: fileKey=%s chars=%d", file_key, len(summary))
        return SummaryRecord(
            file_key=file_key,
            summary=summary,
            preview=data.summary_preview or make_preview(summary),
            created_at=data.created_at or datetime.now(UTC),
        )


class SummaryView:
    """The one summary shown to the user, tagged with the fileKey it came from."""

    def __init__(self) -> None:
        self._current: SummaryRecord | None = None

    @property
    def current(self) -> SummaryRecord | None:
        return self._current

    @property
    def file_key(self) -> str | None:
        return self._current.file_key if self._current else None

    def show(self, record: SummaryRecord) -> None:
        self._current = record

    def show_entry(self, entry: HistoryEntry) -> SummaryRecord:
        record = SummaryRecord(
            file_key=entry.file_key,
            summary=entry.summary or entry.preview,
            preview=entry.preview,
            created_at=entry.created_at,
        )
        self._current = record
        return record

    def clear(self) -> None:
        self._current = None
