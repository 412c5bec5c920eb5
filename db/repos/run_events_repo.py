from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.run_event import RunEvent
from db.utils.time import utcnow


def append_event(
    db: Session,
    *,
    run_id: uuid.UUID,
    type: str,
    data: dict[str, Any] | None = None,
    screenshot_path: str | None = None,
    event_id: uuid.UUID | None = None,
) -> RunEvent:
    # single writer per run (its orchestrator), so max+1 is stable
    last = db.execute(
        select(func.max(RunEvent.sequence)).where(RunEvent.run_id == run_id)
    ).scalar_one_or_none()

    event = RunEvent(
        id=event_id or uuid.uuid4(),
        run_id=run_id,
        sequence=(last or 0) + 1,
        type=type,
        data=data or {},
        screenshot_path=screenshot_path,
        timestamp=utcnow(),
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def list_events_for_run(db: Session, *, run_id: uuid.UUID) -> list[RunEvent]:
    stmt = (
        select(RunEvent)
        .where(RunEvent.run_id == run_id)
        .order_by(RunEvent.sequence.asc())
    )
    return list(db.execute(stmt).scalars().all())
