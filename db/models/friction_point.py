from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils.json_type import JSONType
from db.utils.time import utcnow
from db.utils.uuid_type import UUIDType


class FrictionPoint(Base):
    __tablename__ = "friction_points"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)

    run_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="contentClarity")
    pattern: Mapped[str | None] = mapped_column(String(32), nullable=True)
    element: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    heuristic_violation: Mapped[str | None] = mapped_column(Text, nullable=True)
    wcag_violation: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshot_path: Mapped[str | None] = mapped_column(String(512), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
