"""Record deletion with confirmation, per-key exclusion and local cleanup."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import httpx

from summarizer_client.api import BackendClient, is_success, response_text
from summarizer_client.auth import Credential
from summarizer_client.errors import DeleteError, describe_error
from summarizer_client.history import HistoryStore
from summarizer_client.models import DeleteRequest
from summarizer_client.summarize import SummaryView
from summarizer_client.types import DeletionResult

logger = logging.getLogger(__name__)

# Asked before every delete; returns True to go ahead.
ConfirmCallback = Callable[[str], Awaitable[bool]]


class DeletionCoordinator:
    def __init__(
        self,
        backend: BackendClient,
        history: HistoryStore,
        view: SummaryView,
        *,
        confirm: ConfirmCallback,
    ) -> None:
        self._backend = backend
        self._history = history
        self._view = view
        self._confirm = confirm
        self._pending: set[str] = set()

    def is_pending(self, file_key: str) -> bool:
        return file_key in self._pending

    async def delete(self, file_key: str, credential: Credential) -> DeletionResult:
        """Delete one record after user confirmation.

        A second call for a key that is still pending is rejected without a
        request. The local cache and displayed summary change only after the
        backend confirms; a failure leaves both untouched.
        """
        if file_key in self._pending:
            logger.info("Delete already in progress: fileKey=%s", file_key)
            return DeletionResult(file_key, ok=False, reason="Delete already in progress.")

        self._pending.add(file_key)
        try:
            if not await self._confirm(file_key):
                logger.info("Delete cancelled by user: fileKey=%s", file_key)
                return DeletionResult(file_key, ok=False, reason="Delete cancelled.")

            try:
                await self._request_delete(file_key, credential)
            except DeleteError as e:
                return DeletionResult(file_key, ok=False, reason=describe_error(e))

            removed = self._history.remove(file_key)
            if self._view.file_key == file_key:
                self._view.clear()
            logger.info("Deleted fileKey=%s (cached=%s)", file_key, removed)
            return DeletionResult(file_key, ok=True)
        finally:
            self._pending.discard(file_key)

    async def _request_delete(self, file_key: str, credential: Credential) -> None:
        body = DeleteRequest(file_key=file_key)
        try:
            resp = await self._backend.post_json(
                "/delete-item", body.model_dump(by_alias=True), credential
            )
        except httpx.HTTPError as e:
            raise DeleteError(None, message=f"Delete API error: {e}") from e

        if not is_success(resp):
            logger.warning("Delete failed: status=%d fileKey=%s", resp.status_code, file_key)
            raise DeleteError(resp.status_code, response_text(resp))
