"""Workflow status as a single tagged value plus a pure transition function.

    Idle -> ValidatingFile -> Idle                      (file selected)
    Idle|Failed -> ValidatingFile -> RequestingGrant     (upload requested)
        -> Transferring -> Summarizing -> Ready -> Idle
    any active phase -> Failed -> Idle                   (error, acknowledged)

A new file selection is accepted from any phase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from summarizer_client.errors import IllegalTransitionError, SummarizerError, describe_error


class Phase(str, Enum):
    IDLE = "idle"
    VALIDATING_FILE = "validating_file"
    REQUESTING_GRANT = "requesting_grant"
    TRANSFERRING = "transferring"
    SUMMARIZING = "summarizing"
    READY = "ready"
    FAILED = "failed"


class EventKind(str, Enum):
    FILE_SELECTED = "file_selected"
    FILE_ACCEPTED = "file_accepted"
    FILE_REJECTED = "file_rejected"
    UPLOAD_REQUESTED = "upload_requested"
    VALIDATED = "validated"
    GRANT_OBTAINED = "grant_obtained"
    TRANSFER_CONFIRMED = "transfer_confirmed"
    SUMMARY_OBTAINED = "summary_obtained"
    FAILED = "failed"
    SETTLED = "settled"
    ACKNOWLEDGED = "acknowledged"


@dataclass(frozen=True)
class WorkflowStatus:
    phase: Phase
    reason: str | None = None  # human-readable, Failed only
    error: SummarizerError | None = field(default=None, compare=False)

    @property
    def error_kind(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None

    @property
    def is_failed(self) -> bool:
        return self.phase is Phase.FAILED

    def __str__(self) -> str:
        if self.phase is Phase.FAILED:
            return f"failed({self.error_kind or self.reason})"
        return self.phase.value


@dataclass(frozen=True)
class Event:
    kind: EventKind
    error: SummarizerError | None = None


IDLE = WorkflowStatus(Phase.IDLE)

# Phases from which the upload-and-summarize action may start.
STARTABLE = frozenset({Phase.IDLE, Phase.FAILED})

_ACTIVE = frozenset({
    Phase.VALIDATING_FILE,
    Phase.REQUESTING_GRANT,
    Phase.TRANSFERRING,
    Phase.SUMMARIZING,
})

# event -> (allowed source phases, target phase); FAILED is handled separately.
_TABLE: dict[EventKind, tuple[frozenset[Phase], Phase]] = {
    EventKind.FILE_SELECTED: (frozenset(Phase), Phase.VALIDATING_FILE),
    EventKind.FILE_ACCEPTED: (frozenset({Phase.VALIDATING_FILE}), Phase.IDLE),
    EventKind.FILE_REJECTED: (frozenset({Phase.VALIDATING_FILE}), Phase.IDLE),
    EventKind.UPLOAD_REQUESTED: (STARTABLE, Phase.VALIDATING_FILE),
    EventKind.VALIDATED: (frozenset({Phase.VALIDATING_FILE}), Phase.REQUESTING_GRANT),
    EventKind.GRANT_OBTAINED: (frozenset({Phase.REQUESTING_GRANT}), Phase.TRANSFERRING),
    EventKind.TRANSFER_CONFIRMED: (frozenset({Phase.TRANSFERRING}), Phase.SUMMARIZING),
    EventKind.SUMMARY_OBTAINED: (frozenset({Phase.SUMMARIZING}), Phase.READY),
    EventKind.SETTLED: (frozenset({Phase.READY}), Phase.IDLE),
    EventKind.ACKNOWLEDGED: (frozenset({Phase.FAILED}), Phase.IDLE),
}


def transition(status: WorkflowStatus, event: Event) -> WorkflowStatus:
    """Return the status that follows *status* on *event*.

    Raises IllegalTransitionError when the event is not accepted in the
    current phase.
    """
    if event.kind is EventKind.FAILED:
        if status.phase not in _ACTIVE:
            raise IllegalTransitionError(f"Cannot fail from {status.phase.value}")
        if event.error is None:
            raise IllegalTransitionError("FAILED event requires an error")
        return WorkflowStatus(Phase.FAILED, reason=describe_error(event.error), error=event.error)

    sources, target = _TABLE[event.kind]
    if status.phase not in sources:
        raise IllegalTransitionError(
            f"Event {event.kind.value} not allowed in phase {status.phase.value}"
        )
    return WorkflowStatus(target)


_MESSAGES = {
    Phase.IDLE: "",
    Phase.VALIDATING_FILE: "Checking file...",
    Phase.REQUESTING_GRANT: "Getting upload URL...",
    Phase.TRANSFERRING: "Uploading file to storage...",
    Phase.SUMMARIZING: "Generating summary...",
    Phase.READY: "Summary generated successfully.",
}


def status_message(status: WorkflowStatus) -> str:
    if status.phase is Phase.FAILED:
        return status.reason or "Error"
    return _MESSAGES[status.phase]
