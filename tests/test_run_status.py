from __future__ import annotations

import pytest

from app.domain.run_status import assert_valid_transition, is_terminal, resolve_terminal_status
from db.models.run import RunStatus


def test_terminal_statuses():
    assert is_terminal(RunStatus.COMPLETED)
    assert is_terminal(RunStatus.FAILED)
    assert is_terminal(RunStatus.STOPPED)
    assert not is_terminal(RunStatus.PENDING)
    assert not is_terminal(RunStatus.RUNNING)


@pytest.mark.parametrize(
    "frm,to",
    [
        (RunStatus.PENDING, RunStatus.RUNNING),
        (RunStatus.PENDING, RunStatus.FAILED),
        (RunStatus.PENDING, RunStatus.STOPPED),
        (RunStatus.RUNNING, RunStatus.COMPLETED),
        (RunStatus.RUNNING, RunStatus.FAILED),
        (RunStatus.RUNNING, RunStatus.STOPPED),
    ],
)
def test_allowed_transitions(frm, to):
    assert_valid_transition(frm, to)


@pytest.mark.parametrize(
    "frm,to",
    [
        (RunStatus.PENDING, RunStatus.COMPLETED),
        (RunStatus.RUNNING, RunStatus.PENDING),
        (RunStatus.COMPLETED, RunStatus.FAILED),
        (RunStatus.STOPPED, RunStatus.RUNNING),
    ],
)
def test_rejected_transitions(frm, to):
    with pytest.raises(ValueError):
        assert_valid_transition(frm, to)


def test_stop_wins_over_goal():
    assert resolve_terminal_status(stop_requested=True, goal_reached=True) == RunStatus.STOPPED
    assert resolve_terminal_status(stop_requested=False, goal_reached=True) == RunStatus.COMPLETED
    assert resolve_terminal_status(stop_requested=False, goal_reached=False) == RunStatus.FAILED
