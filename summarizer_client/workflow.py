"""End-to-end upload -> summarize -> history workflow.

``WorkflowController`` owns the only mutable status and the one message shown
to the user. The pipeline is strictly sequential (credential, grant,
transfer, credential, summarize) and every await is followed by a generation
check: selecting a new file bumps the generation, and a run that finds itself
superseded stops issuing calls and leaves shared state alone.

History refresh and deletion failures are notices: they replace the message
but never change the workflow status.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from summarizer_client.api import BackendClient
from summarizer_client.auth import TokenSource
from summarizer_client.config import ClientConfig
from summarizer_client.deletion import ConfirmCallback, DeletionCoordinator
from summarizer_client.errors import (
    SummarizerError,
    ValidationError,
    WorkflowBusyError,
    describe_error,
)
from summarizer_client.history import HistoryStore
from summarizer_client.status import (
    IDLE,
    STARTABLE,
    Event,
    EventKind,
    Phase,
    WorkflowStatus,
    status_message,
    transition,
)
from summarizer_client.summarize import SummarizationTrigger, SummaryView
from summarizer_client.types import DeletionResult, HistoryEntry, SelectedDocument, SummaryRecord
from summarizer_client.upload import UploadCoordinator

logger = logging.getLogger(__name__)

_MIB = 1024 * 1024


def _format_size(num_bytes: int) -> str:
    return f"{num_bytes / _MIB:.1f} MiB"


def validate_document(document: SelectedDocument, max_bytes: int) -> None:
    """Raise ValidationError if *document* may not be uploaded."""
    if document.size <= 0:
        raise ValidationError(f"File {document.name!r} is empty.")
    if document.size > max_bytes:
        raise ValidationError(
            f"File {document.name!r} is too large: {_format_size(document.size)} "
            f"exceeds the {_format_size(max_bytes)} limit."
        )


class WorkflowController:
    def __init__(
        self,
        *,
        tokens: TokenSource,
        uploader: UploadCoordinator,
        summarizer: SummarizationTrigger,
        history: HistoryStore,
        deleter: DeletionCoordinator,
        view: SummaryView,
        max_upload_bytes: int,
        history_refresh_delay: float = 1.5,
        ready_display_seconds: float = 3.0,
    ) -> None:
        self._tokens = tokens
        self._uploader = uploader
        self._summarizer = summarizer
        self._history = history
        self._deleter = deleter
        self._view = view
        self._max_upload_bytes = max_upload_bytes
        self._history_refresh_delay = history_refresh_delay
        self._ready_display_seconds = ready_display_seconds

        self._status: WorkflowStatus = IDLE
        self._message = ""
        self._document: SelectedDocument | None = None
        self._file_key: str | None = None
        self._generation = 0
        self._tasks: set[asyncio.Task[None]] = set()

    # -- State ----------------------------------------------------------------

    @property
    def status(self) -> WorkflowStatus:
        return self._status

    @property
    def message(self) -> str:
        return self._message

    @property
    def document(self) -> SelectedDocument | None:
        return self._document

    @property
    def file_key(self) -> str | None:
        """fileKey of the last completed upload, reset when a new file is selected."""
        return self._file_key

    @property
    def summary(self) -> SummaryRecord | None:
        return self._view.current

    @property
    def history(self) -> HistoryStore:
        return self._history

    def _apply(self, kind: EventKind, error: SummarizerError | None = None) -> None:
        previous = self._status
        self._status = transition(previous, Event(kind, error))
        self._message = status_message(self._status)
        logger.debug("Workflow %s -> %s on %s", previous, self._status, kind.value)

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.info("Discarding result of superseded workflow (generation %d)", generation)
            return True
        return False

    # -- File selection -------------------------------------------------------

    def select_file(self, document: SelectedDocument) -> WorkflowStatus:
        """Make *document* the current selection, superseding any running upload."""
        self._generation += 1
        self._document = document
        self._file_key = None
        self._view.clear()

        self._apply(EventKind.FILE_SELECTED)
        try:
            validate_document(document, self._max_upload_bytes)
        except ValidationError as e:
            self._apply(EventKind.FILE_REJECTED)
            self._message = describe_error(e)
            logger.info("File rejected: %s", e)
        else:
            self._apply(EventKind.FILE_ACCEPTED)
            self._message = f"Selected {document.name} ({_format_size(document.size)})."
        return self._status

    def acknowledge(self) -> WorkflowStatus:
        self._apply(EventKind.ACKNOWLEDGED)
        return self._status

    # -- Upload & summarize ---------------------------------------------------

    async def upload_and_summarize(self) -> WorkflowStatus:
        """Run validate -> grant -> transfer -> summarize for the selection.

        Errors end the run in ``Failed``; nothing is raised except
        WorkflowBusyError when a run is already active.
        """
        if self._status.phase not in STARTABLE:
            raise WorkflowBusyError(f"Upload already in progress ({self._status})")

        generation = self._generation
        document = self._document
        self._apply(EventKind.UPLOAD_REQUESTED)

        try:
            if document is None:
                raise ValidationError("Please choose a file first.")
            validate_document(document, self._max_upload_bytes)
            self._apply(EventKind.VALIDATED)

            credential = await self._tokens.get_credential()
            if self._is_stale(generation):
                return self._status
            grant = await self._uploader.request_grant(document, credential)
            if self._is_stale(generation):
                return self._status
            self._apply(EventKind.GRANT_OBTAINED)

            file_key = await self._uploader.transfer(document, grant)
            if self._is_stale(generation):
                return self._status
            self._file_key = file_key
            self._apply(EventKind.TRANSFER_CONFIRMED)
            self._message = f"Upload complete! fileKey = {file_key}. Generating summary..."

            credential = await self._tokens.get_credential()
            if self._is_stale(generation):
                return self._status
            record = await self._summarizer.summarize(file_key, credential)
            if self._is_stale(generation):
                return self._status
        except SummarizerError as e:
            if self._is_stale(generation):
                return self._status
            logger.warning("Workflow failed in %s: %s", self._status, e)
            self._apply(EventKind.FAILED, e)
            return self._status

        self._document = None
        self._view.show(record)
        self._apply(EventKind.SUMMARY_OBTAINED)
        self._schedule(self._refresh_after_settle(generation))
        self._schedule(self._settle_ready(generation))
        return self._status

    async def run(self, document: SelectedDocument) -> WorkflowStatus:
        """Select *document* and, if it was accepted, upload and summarize it."""
        self.select_file(document)
        return await self.upload_and_summarize()

    # -- History --------------------------------------------------------------

    async def refresh_history(self, generation: int | None = None) -> tuple[HistoryEntry, ...] | None:
        """Reload the history list. Returns None (and sets a notice) on failure.

        When *generation* is given the notice is dropped if a newer file was
        selected while the refresh was in flight.
        """
        try:
            credential = await self._tokens.get_credential()
            entries = await self._history.refresh(credential)
        except SummarizerError as e:
            logger.warning("History refresh failed: %s", e)
            if generation is None or not self._is_stale(generation):
                self._message = describe_error(e)
            return None
        return entries

    def show_entry(self, file_key: str) -> SummaryRecord | None:
        """Display the summary of a cached history entry."""
        entry = self._history.get(file_key)
        if entry is None:
            self._message = f"No history entry for {file_key}."
            return None
        return self._view.show_entry(entry)

    async def delete_entry(self, file_key: str) -> DeletionResult:
        try:
            credential = await self._tokens.get_credential()
        except SummarizerError as e:
            self._message = describe_error(e)
            return DeletionResult(file_key, ok=False, reason=self._message)

        result = await self._deleter.delete(file_key, credential)
        self._message = f"Deleted {file_key}." if result.ok else (result.reason or "Delete failed.")
        return result

    # -- Background work ------------------------------------------------------

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refresh_after_settle(self, generation: int) -> None:
        # Best effort: the backend may not list the new record yet.
        await asyncio.sleep(self._history_refresh_delay)
        await self.refresh_history(generation)

    async def _settle_ready(self, generation: int) -> None:
        await asyncio.sleep(self._ready_display_seconds)
        if generation == self._generation and self._status.phase is Phase.READY:
            self._apply(EventKind.SETTLED)

    async def drain(self) -> None:
        """Wait for scheduled refresh and settle tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        """Cancel scheduled background work."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


def build_controller(
    cfg: ClientConfig,
    backend: BackendClient,
    tokens: TokenSource,
    *,
    confirm: ConfirmCallback,
) -> WorkflowController:
    view = SummaryView()
    history = HistoryStore(backend, limit=cfg.history_limit)
    return WorkflowController(
        tokens=tokens,
        uploader=UploadCoordinator(backend),
        summarizer=SummarizationTrigger(backend),
        history=history,
        deleter=DeletionCoordinator(backend, history, view, confirm=confirm),
        view=view,
        max_upload_bytes=cfg.max_upload_bytes,
        history_refresh_delay=cfg.history_refresh_delay,
        ready_display_seconds=cfg.ready_display_seconds,
    )
