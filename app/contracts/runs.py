from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.contracts.friction import ElementReference
from app.contracts.run_summary import RunSummary


class EventType(str, Enum):
    NAVIGATION = "navigation"
    CLICK = "click"
    TYPE = "type"
    SCROLL = "scroll"
    REASONING = "reasoning"
    FRICTION = "friction"
    GOAL_REACHED = "goal_reached"
    ABANDONED = "abandoned"
    ERROR = "error"


class _ReadModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RunRead(_ReadModel):
    id: UUID
    url: str
    goal: str
    persona_id: str
    persona_name: str | None = None
    status: str
    created_at: datetime
    completed_at: datetime | None = None
    summary: RunSummary | None = None

    @field_validator("summary", mode="before")
    @classmethod
    def _resolve_summary(cls, v: Any) -> Any:
        if v is None or isinstance(v, RunSummary):
            return v
        return RunSummary.from_stored(v)


class RunEventRead(_ReadModel):
    id: UUID
    run_id: UUID
    sequence: int
    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    screenshot_path: str | None = None
    timestamp: datetime


class FrictionPointRead(_ReadModel):
    id: UUID
    run_id: UUID
    description: str
    severity: str
    category: str
    pattern: str | None = None
    element: ElementReference | None = None
    heuristic_violation: str | None = None
    wcag_violation: str | None = None
    screenshot_path: str | None = None
    timestamp: datetime
