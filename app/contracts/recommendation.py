from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.contracts.friction import ElementReference, FrictionCategory


class RecommendationType(str, Enum):
    QUICK_WIN = "quickWin"
    MAJOR_CHANGE = "majorChange"
    CONTENT_FIX = "contentFix"
    BUG_FIX = "bugFix"
    ENHANCEMENT = "enhancement"


class RecommendationEffort(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Recommendation(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: str = "Untitled Recommendation"
    description: str = ""
    type: RecommendationType = RecommendationType.ENHANCEMENT
    effort: RecommendationEffort = RecommendationEffort.MEDIUM
    priority: int = Field(default=3, ge=1, le=5)
    category: FrictionCategory = FrictionCategory.CONTENT_CLARITY
    element: ElementReference | None = None
    current_state: str | None = None
    suggested_state: str | None = None
    affected_personas: list[str] = Field(default_factory=list)
    impact_score: int = Field(default=5, ge=1, le=10)

    @field_validator("type", "effort", "category", mode="before")
    @classmethod
    def _drop_unknown(cls, v: Any, info) -> Any:
        enum_cls = {
            "type": RecommendationType,
            "effort": RecommendationEffort,
            "category": FrictionCategory,
        }[info.field_name]
        try:
            return enum_cls(v)
        except ValueError:
            return cls.model_fields[info.field_name].default

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, v: Any) -> int:
        return _clamp_int(v, low=1, high=5, default=3)

    @field_validator("impact_score", mode="before")
    @classmethod
    def _clamp_impact(cls, v: Any) -> int:
        return _clamp_int(v, low=1, high=10, default=5)

    @field_validator("element", mode="before")
    @classmethod
    def _element(cls, v: Any) -> Any:
        if isinstance(v, dict) and v.get("selector"):
            return v
        return None


def _clamp_int(value: Any, *, low: int, high: int, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def fallback_recommendation(persona_id: str, *, title: str, description: str) -> Recommendation:
    return Recommendation(
        title=title,
        description=description,
        type=RecommendationType.ENHANCEMENT,
        effort=RecommendationEffort.MEDIUM,
        priority=3,
        category=FrictionCategory.CONTENT_CLARITY,
        affected_personas=[persona_id],
        impact_score=5,
    )
