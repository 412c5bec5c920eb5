from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.friction_point import FrictionPoint
from db.utils.time import utcnow


def create_friction_point(
    db: Session,
    *,
    run_id: uuid.UUID,
    description: str,
    severity: str,
    category: str,
    pattern: str | None = None,
    element: dict[str, Any] | None = None,
    heuristic_violation: str | None = None,
    wcag_violation: str | None = None,
    screenshot_path: str | None = None,
    friction_id: uuid.UUID | None = None,
) -> FrictionPoint:
    friction = FrictionPoint(
        id=friction_id or uuid.uuid4(),
        run_id=run_id,
        description=description,
        severity=severity,
        category=category,
        pattern=pattern,
        element=element,
        heuristic_violation=heuristic_violation,
        wcag_violation=wcag_violation,
        screenshot_path=screenshot_path,
        timestamp=utcnow(),
    )
    db.add(friction)
    db.commit()
    db.refresh(friction)
    return friction


def list_friction_points_for_run(db: Session, *, run_id: uuid.UUID) -> list[FrictionPoint]:
    stmt = (
        select(FrictionPoint)
        .where(FrictionPoint.run_id == run_id)
        .order_by(FrictionPoint.timestamp.asc())
    )
    return list(db.execute(stmt).scalars().all())


def count_friction_points_for_run(db: Session, *, run_id: uuid.UUID) -> int:
    stmt = select(func.count()).select_from(FrictionPoint).where(FrictionPoint.run_id == run_id)
    return int(db.execute(stmt).scalar_one())
