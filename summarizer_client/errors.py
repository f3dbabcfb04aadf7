"""Error taxonomy for the summarizer client.

Every failure the workflow can hit maps to one of these types. Backend call
failures carry the HTTP status (``None`` when the request never produced a
response) and the raw response body for diagnostics.
"""

from __future__ import annotations


class SummarizerError(Exception):
    """Base exception for all summarizer client errors."""


class ValidationError(SummarizerError):
    """Raised when a selected file is rejected before any network call."""


class AuthError(SummarizerError):
    """Raised when no valid bearer credential can be obtained."""


class ApiError(SummarizerError):
    """A backend or storage call that did not return a 2xx response."""

    label = "API"

    def __init__(self, status: int | None, body: str = "", message: str | None = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        if self.status is None:
            return f"{self.label} error: request failed"
        detail = f" {self.body}" if self.body else ""
        return f"{self.label} error: {self.status}{detail}"


class GrantError(ApiError):
    """POST /upload failed to return an upload grant."""

    label = "Upload API"


class TransferError(ApiError):
    """The direct PUT to the pre-signed storage URL failed."""

    label = "Storage upload"

    def _default_message(self) -> str:
        # Storage error bodies are XML noise; the status is enough.
        if self.status is None:
            return f"{self.label} failed: request failed"
        return f"{self.label} failed: {self.status}"


class SummarizeError(ApiError):
    label = "Summarize API"


class HistoryError(ApiError):
    label = "History API"


class DeleteError(ApiError):
    label = "Delete API"


class GrantConsumedError(SummarizerError):
    """Raised when an upload grant is used a second time."""


class WorkflowBusyError(SummarizerError):
    """Raised when an upload is requested while another one is running."""


class IllegalTransitionError(RuntimeError):
    """Raised when the workflow state machine receives an event it cannot accept."""


def describe_error(exc: BaseException) -> str:
    """Return the single status line shown to the user for *exc*."""
    if isinstance(exc, AuthError):
        return "Could not get auth token."
    if isinstance(exc, ValidationError):
        return str(exc)
    return f"Error: {exc}"
