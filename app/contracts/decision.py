from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from app.contracts.friction import (
    ElementReference,
    FrictionCategory,
    FrictionPattern,
    FrictionSeverity,
)


class ActionType(str, Enum):
    CLICK = "click"
    TYPE = "type"
    SCROLL = "scroll"
    NAVIGATE = "navigate"
    DONE = "done"
    STUCK = "stuck"


def _known_or_none(enum_cls: type[Enum], value: Any) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


class FrictionAssessment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    detected: bool = False
    description: str | None = None
    severity: FrictionSeverity | None = None
    category: FrictionCategory | None = None
    pattern: FrictionPattern | None = None
    element: ElementReference | None = None
    heuristic_violation: str | None = None
    wcag_violation: str | None = None

    # The oracle invents labels now and then; unknown values degrade to "not given".
    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, v: Any) -> Any:
        return _known_or_none(FrictionSeverity, v)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Any:
        return _known_or_none(FrictionCategory, v)

    @field_validator("pattern", mode="before")
    @classmethod
    def _pattern(cls, v: Any) -> Any:
        return _known_or_none(FrictionPattern, v)

    @field_validator("element", mode="before")
    @classmethod
    def _element(cls, v: Any) -> Any:
        if isinstance(v, dict) and v.get("selector"):
            return v
        return None


class AgentAction(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    type: ActionType
    target: str | None = None
    value: str | None = None
    reasoning: str = ""
    friction_assessment: FrictionAssessment | None = None


class Decision(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    observation: str = ""
    reasoning: str = ""
    action: AgentAction

    @property
    def friction_detected(self) -> bool:
        assessment = self.action.friction_assessment
        return bool(assessment and assessment.detected)

    @classmethod
    def stuck(cls, *, observation: str, reasoning: str, action_reasoning: str) -> "Decision":
        return cls(
            observation=observation,
            reasoning=reasoning,
            action=AgentAction(type=ActionType.STUCK, reasoning=action_reasoning),
        )
