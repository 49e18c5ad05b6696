"""Unit tests for RunState and RunStatus."""

from __future__ import annotations

import pytest

from src.pipeline.run_state import RunState, RunStatus


def _state(*names: str) -> RunState:
    return RunState(run_id="run-1", candidates=list(names))


class TestRunStatus:
    @pytest.mark.parametrize(
        "status, terminal",
        [
            (RunStatus.PENDING, False),
            (RunStatus.RUNNING, False),
            (RunStatus.AWAITING_CHOICE, False),
            (RunStatus.COMPLETED, True),
            (RunStatus.CANCELLED, True),
            (RunStatus.FAILED, True),
        ],
    )
    def test_is_terminal(self, status: RunStatus, terminal: bool) -> None:
        assert status.is_terminal is terminal


class TestRunState:
    def test_defaults(self) -> None:
        state = _state("Bicep")
        assert state.status is RunStatus.PENDING
        assert state.resolved == []
        assert state.not_found == []
        assert state.rejected_ids == frozenset()
        assert not state.is_cancelled
        assert not state.is_finished

    def test_rejected_ids_only_grow(self) -> None:
        state = _state("Rose")
        state.reject(["a", "b"])
        state.reject(["b", "c"])
        assert state.rejected_ids == frozenset({"a", "b", "c"})

    def test_rejected_ids_view_is_immutable(self) -> None:
        state = _state("Rose")
        state.reject(["a"])
        view = state.rejected_ids
        assert isinstance(view, frozenset)
        state.reject(["b"])
        assert view == frozenset({"a"})

    def test_request_cancel(self) -> None:
        state = _state("Rose")
        state.request_cancel()
        assert state.is_cancelled

    def test_pending_names_follow_processed_count(self) -> None:
        state = _state("Bicep", "Four Tet", "Overmono")
        state.processed_count = 1
        assert state.pending_names == ["Four Tet", "Overmono"]

    def test_finish_sets_terminal_fields(self) -> None:
        state = _state("Bicep")
        state.finish(RunStatus.FAILED, failure_reason="authorization_failed")
        assert state.is_finished
        assert state.failure_reason == "authorization_failed"
        assert state.finished_at is not None
        assert state.pending_gate is None

    def test_runs_do_not_share_state(self) -> None:
        first = _state("Rose")
        second = _state("Rose")
        first.reject(["a"])
        first.request_cancel()
        first.not_found.append("Rose")
        assert second.rejected_ids == frozenset()
        assert not second.is_cancelled
        assert second.not_found == []
