from __future__ import annotations

from db.models.run import RunStatus

TERMINAL = {
    RunStatus.COMPLETED,
    RunStatus.FAILED,
    RunStatus.STOPPED,
}

ALLOWED = {
    RunStatus.PENDING: {RunStatus.RUNNING, RunStatus.FAILED, RunStatus.STOPPED},
    RunStatus.RUNNING: {RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.STOPPED},
    RunStatus.COMPLETED: set(),
    RunStatus.FAILED: set(),
    RunStatus.STOPPED: set(),
}


def is_terminal(status: RunStatus) -> bool:
    return status in TERMINAL


def assert_valid_transition(frm: RunStatus, to: RunStatus) -> None:
    if frm in TERMINAL:
        raise ValueError(f"Cannot transition from terminal status: {frm.value}")

    if to not in ALLOWED.get(frm, set()):
        raise ValueError(f"Invalid status transition: {frm.value} -> {to.value}")


def resolve_terminal_status(*, stop_requested: bool, goal_reached: bool) -> RunStatus:
    if stop_requested:
        return RunStatus.STOPPED
    if goal_reached:
        return RunStatus.COMPLETED
    return RunStatus.FAILED
