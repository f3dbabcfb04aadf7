"""Unit tests for the workflow status state machine."""

from __future__ import annotations

import pytest

from summarizer_client.errors import GrantError, IllegalTransitionError, ValidationError
from summarizer_client.status import (
    IDLE,
    Event,
    EventKind,
    Phase,
    WorkflowStatus,
    status_message,
    transition,
)


def _run(*kinds: EventKind, start: WorkflowStatus = IDLE) -> WorkflowStatus:
    status = start
    for kind in kinds:
        status = transition(status, Event(kind))
    return status


class TestHappyPath:
    def test_full_pipeline_reaches_ready_then_idle(self):
        status = _run(
            EventKind.UPLOAD_REQUESTED,
            EventKind.VALIDATED,
            EventKind.GRANT_OBTAINED,
            EventKind.TRANSFER_CONFIRMED,
            EventKind.SUMMARY_OBTAINED,
        )
        assert status.phase is Phase.READY
        assert transition(status, Event(EventKind.SETTLED)) == IDLE

    def test_file_selection_returns_to_idle(self):
        assert _run(EventKind.FILE_SELECTED, EventKind.FILE_ACCEPTED) == IDLE
        assert _run(EventKind.FILE_SELECTED, EventKind.FILE_REJECTED) == IDLE

    @pytest.mark.parametrize("phase", list(Phase))
    def test_file_selection_allowed_from_any_phase(self, phase):
        status = transition(WorkflowStatus(phase), Event(EventKind.FILE_SELECTED))
        assert status.phase is Phase.VALIDATING_FILE


class TestFailure:
    def test_failure_carries_reason_and_error(self):
        err = GrantError(500, "boom")
        status = _run(EventKind.UPLOAD_REQUESTED, EventKind.VALIDATED)
        failed = transition(status, Event(EventKind.FAILED, err))
        assert failed.phase is Phase.FAILED
        assert failed.error is err
        assert failed.error_kind == "GrantError"
        assert failed.reason == "Error: Upload API error: 500 boom"
        assert str(failed) == "failed(GrantError)"

    def test_validation_failure_message_is_not_prefixed(self):
        status = _run(EventKind.UPLOAD_REQUESTED)
        failed = transition(status, Event(EventKind.FAILED, ValidationError("File 'a' is empty.")))
        assert status_message(failed) == "File 'a' is empty."

    def test_acknowledge_returns_to_idle(self):
        failed = transition(_run(EventKind.UPLOAD_REQUESTED), Event(EventKind.FAILED, ValidationError("x")))
        assert transition(failed, Event(EventKind.ACKNOWLEDGED)) == IDLE

    def test_upload_can_restart_from_failed(self):
        failed = transition(_run(EventKind.UPLOAD_REQUESTED), Event(EventKind.FAILED, ValidationError("x")))
        assert transition(failed, Event(EventKind.UPLOAD_REQUESTED)).phase is Phase.VALIDATING_FILE

    def test_failed_event_requires_error(self):
        with pytest.raises(IllegalTransitionError, match="requires an error"):
            transition(_run(EventKind.UPLOAD_REQUESTED), Event(EventKind.FAILED))

    @pytest.mark.parametrize("phase", [Phase.IDLE, Phase.READY, Phase.FAILED])
    def test_cannot_fail_from_inactive_phase(self, phase):
        with pytest.raises(IllegalTransitionError):
            transition(WorkflowStatus(phase), Event(EventKind.FAILED, ValidationError("x")))


class TestIllegalTransitions:
    def test_summarizing_only_reachable_from_transferring(self):
        for phase in Phase:
            if phase is Phase.TRANSFERRING:
                continue
            with pytest.raises(IllegalTransitionError):
                transition(WorkflowStatus(phase), Event(EventKind.TRANSFER_CONFIRMED))

    @pytest.mark.parametrize(
        "phase",
        [Phase.VALIDATING_FILE, Phase.REQUESTING_GRANT, Phase.TRANSFERRING, Phase.SUMMARIZING, Phase.READY],
    )
    def test_upload_rejected_while_active(self, phase):
        with pytest.raises(IllegalTransitionError):
            transition(WorkflowStatus(phase), Event(EventKind.UPLOAD_REQUESTED))

    def test_cannot_skip_grant(self):
        with pytest.raises(IllegalTransitionError):
            _run(EventKind.UPLOAD_REQUESTED, EventKind.VALIDATED, EventKind.TRANSFER_CONFIRMED)


class TestMessages:
    def test_progress_messages(self):
        assert status_message(WorkflowStatus(Phase.REQUESTING_GRANT)) == "Getting upload URL..."
        assert status_message(WorkflowStatus(Phase.SUMMARIZING)) == "Generating summary..."
        assert status_message(WorkflowStatus(Phase.READY)) == "Summary generated successfully."
        assert status_message(IDLE) == ""
