from __future__ import annotations

import pytest
from sqlalchemy import text

from db.models.run import RunStatus
from db.repos.friction_points_repo import (
    count_friction_points_for_run,
    create_friction_point,
    list_friction_points_for_run,
)
from db.repos.run_events_repo import append_event, list_events_for_run
from db.repos.runs_repo import (
    RunNotFoundError,
    RunStatusConflictError,
    create_run,
    finalize_run,
    get_run,
    list_runs,
    update_run_status,
)


@pytest.fixture()
def run(db):
    # quick smoke check that DB is reachable
    db.execute(text("SELECT 1"))
    return create_run(
        db,
        url="https://shop.test/",
        goal="Find the returns policy",
        persona_id="cautious-first-timer",
        persona_name="Cautious First-Timer",
    )


def test_create_and_fetch_run(db, run):
    fetched = get_run(db, run.id)
    assert fetched is not None
    assert fetched.id == run.id
    assert fetched.status == RunStatus.PENDING.value
    assert fetched.persona_id == "cautious-first-timer"
    assert fetched.summary is None
    assert fetched.completed_at is None


def test_list_runs_newest_first(db, run):
    later = create_run(db, url="https://shop.test/b", goal="Buy socks", persona_id="power-user")
    assert [r.id for r in list_runs(db)][:2] == [later.id, run.id]


def test_valid_status_transition(db, run):
    updated = update_run_status(db, run_id=run.id, to_status=RunStatus.RUNNING, expected_from=RunStatus.PENDING)
    assert updated.status == RunStatus.RUNNING.value


def test_invalid_status_transition_rejected(db, run):
    with pytest.raises(RunStatusConflictError):
        update_run_status(db, run_id=run.id, to_status=RunStatus.COMPLETED)


def test_expected_from_mismatch_rejected(db, run):
    with pytest.raises(RunStatusConflictError):
        update_run_status(db, run_id=run.id, to_status=RunStatus.FAILED, expected_from=RunStatus.RUNNING)


def test_finalize_writes_status_summary_and_completion(db, run):
    update_run_status(db, run_id=run.id, to_status=RunStatus.RUNNING)
    done = finalize_run(
        db,
        run_id=run.id,
        to_status=RunStatus.COMPLETED,
        summary={"stepsCompleted": 3, "goalReached": True, "frictionPointCount": 0, "recommendations": []},
    )
    assert done.status == RunStatus.COMPLETED.value
    assert done.summary["stepsCompleted"] == 3
    assert done.completed_at is not None

    with pytest.raises(RunStatusConflictError):
        finalize_run(db, run_id=run.id, to_status=RunStatus.STOPPED, summary={}, expected_from=None)


def test_unknown_run_not_found(db):
    import uuid

    with pytest.raises(RunNotFoundError):
        update_run_status(db, run_id=uuid.uuid4(), to_status=RunStatus.RUNNING)


def test_event_sequences_increase_per_run(db, run):
    other = create_run(db, url="https://shop.test/", goal="x", persona_id="power-user")
    append_event(db, run_id=run.id, type="navigation", data={"url": "https://shop.test/"})
    append_event(db, run_id=other.id, type="navigation", data={"url": "https://shop.test/"})
    append_event(db, run_id=run.id, type="reasoning", data={"reasoning": "look"})

    events = list_events_for_run(db, run_id=run.id)
    assert [(e.sequence, e.type) for e in events] == [(1, "navigation"), (2, "reasoning")]
    assert [e.sequence for e in list_events_for_run(db, run_id=other.id)] == [1]


def test_friction_points_round_trip(db, run):
    create_friction_point(
        db,
        run_id=run.id,
        description="Tiny tap target",
        severity="high",
        category="visualDesign",
        pattern="repeatedClicks",
        element={"selector": "#buy", "visibleText": "Buy"},
    )
    [point] = list_friction_points_for_run(db, run_id=run.id)
    assert point.element == {"selector": "#buy", "visibleText": "Buy"}
    assert point.pattern == "repeatedClicks"
    assert count_friction_points_for_run(db, run_id=run.id) == 1
