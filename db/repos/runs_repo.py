from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.run_status import assert_valid_transition
from db.models.run import Run, RunStatus
from db.utils.time import utcnow


class RunNotFoundError(Exception):
    pass


class RunStatusConflictError(Exception):
    pass


def create_run(
    db: Session,
    *,
    url: str,
    goal: str,
    persona_id: str,
    persona_name: str | None = None,
    run_id: uuid.UUID | None = None,
) -> Run:
    run = Run(
        id=run_id or uuid.uuid4(),
        url=url,
        goal=goal,
        persona_id=persona_id,
        persona_name=persona_name,
        status=RunStatus.PENDING.value,
        created_at=utcnow(),
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def get_run(db: Session, run_id: uuid.UUID) -> Run | None:
    return db.execute(select(Run).where(Run.id == run_id)).scalar_one_or_none()


def list_runs(db: Session) -> list[Run]:
    stmt = select(Run).order_by(Run.created_at.desc())
    return list(db.execute(stmt).scalars().all())


def _load_for_transition(
    db: Session,
    *,
    run_id: uuid.UUID,
    to_status: RunStatus,
    expected_from: RunStatus | None,
) -> Run:
    run = get_run(db, run_id)
    if not run:
        raise RunNotFoundError(f"Run not found: {run_id}")

    current = RunStatus(run.status)
    if expected_from is not None and current != expected_from:
        raise RunStatusConflictError(f"Expected {expected_from.value}, found {current.value}")

    try:
        assert_valid_transition(current, to_status)
    except ValueError as e:
        raise RunStatusConflictError(str(e)) from e
    return run


def update_run_status(
    db: Session,
    *,
    run_id: uuid.UUID,
    to_status: RunStatus,
    expected_from: RunStatus | None = None,
) -> Run:
    run = _load_for_transition(db, run_id=run_id, to_status=to_status, expected_from=expected_from)

    run.status = to_status.value

    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def finalize_run(
    db: Session,
    *,
    run_id: uuid.UUID,
    to_status: RunStatus,
    summary: dict[str, Any],
    expected_from: RunStatus | None = RunStatus.RUNNING,
    completed_at: datetime | None = None,
) -> Run:
    """
    The only write allowed to touch a run after it leaves RUNNING.

    Status, summary and completion time land in a single commit so readers
    never see a terminal run without its summary.
    """
    run = _load_for_transition(db, run_id=run_id, to_status=to_status, expected_from=expected_from)

    run.status = to_status.value
    run.summary = summary
    run.completed_at = completed_at or utcnow()

    db.add(run)
    db.commit()
    db.refresh(run)
    return run
