from __future__ import annotations

from enum import Enum
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.contracts.friction import FrictionCategory

Patience = Literal["low", "medium", "high"]
ReadingStyle = Literal["skim", "thorough", "skip"]
TechLiteracy = Literal["low", "moderate", "high"]
Device = Literal["mobile", "tablet", "desktop"]
ScrollBehavior = Literal["minimal", "normal", "thorough"]
TypingSpeed = Literal["slow", "moderate", "fast"]
ClickPrecision = Literal["low", "medium", "high"]
AttentionSpan = Literal["short", "moderate", "extended"]
InputMethod = Literal["mouse", "touch", "keyboard"]


class PersonaCategory(str, Enum):
    GENERAL = "general"
    ACCESSIBILITY = "accessibility"
    DEMOGRAPHIC = "demographic"
    CONTEXTUAL = "contextual"


class _Frozen(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class Viewport(_Frozen):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


DEVICE_VIEWPORTS: dict[str, Viewport] = {
    "mobile": Viewport(width=390, height=844),
    "tablet": Viewport(width=1024, height=768),
    "desktop": Viewport(width=1440, height=900),
}


class PriorityVector(_Frozen):
    """How much each friction category matters to a persona, 1 (barely) to 5 (a lot)."""

    navigation: int = Field(..., ge=1, le=5)
    forms: int = Field(..., ge=1, le=5)
    content_clarity: int = Field(..., ge=1, le=5)
    visual_design: int = Field(..., ge=1, le=5)
    performance: int = Field(..., ge=1, le=5)
    accessibility: int = Field(..., ge=1, le=5)

    @classmethod
    def uniform(cls, value: int) -> "PriorityVector":
        return cls(**{name: value for name in _FIELD_BY_CATEGORY.values()})

    def for_category(self, category: FrictionCategory) -> int:
        return getattr(self, _FIELD_BY_CATEGORY[FrictionCategory(category)])

    def with_focus(self, areas: Iterable[FrictionCategory], *, value: int = 5) -> "PriorityVector":
        update = {_FIELD_BY_CATEGORY[FrictionCategory(area)]: value for area in areas}
        return self.model_copy(update=update)

    def items(self) -> list[tuple[FrictionCategory, int]]:
        return [(category, getattr(self, name)) for category, name in _FIELD_BY_CATEGORY.items()]


# one entry per FrictionCategory member; tests/test_persona_catalog.py holds this exhaustive
_FIELD_BY_CATEGORY: dict[FrictionCategory, str] = {
    FrictionCategory.NAVIGATION: "navigation",
    FrictionCategory.FORMS: "forms",
    FrictionCategory.CONTENT_CLARITY: "content_clarity",
    FrictionCategory.VISUAL_DESIGN: "visual_design",
    FrictionCategory.PERFORMANCE: "performance",
    FrictionCategory.ACCESSIBILITY: "accessibility",
}


class PersonaConstraints(_Frozen):
    max_friction_points: int = Field(..., ge=1)
    reading_style: ReadingStyle
    patience: Patience
    viewport: Viewport
    scroll_behavior: ScrollBehavior
    typing_speed: TypingSpeed
    click_precision: ClickPrecision
    attention_span: AttentionSpan
    tech_literacy: TechLiteracy
    input_method: InputMethod = "mouse"


class Persona(_Frozen):
    id: str
    name: str
    description: str
    category: PersonaCategory
    priorities: PriorityVector
    example_frictions: tuple[str, ...] = ()
    constraints: PersonaConstraints
    system_prompt: str

    @property
    def max_friction_points(self) -> int:
        return self.constraints.max_friction_points

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class CustomPersonaInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field(..., min_length=1, max_length=2000)
    patience: Patience
    reading_style: ReadingStyle
    tech_literacy: TechLiteracy
    device: Device
    max_friction_points: int = Field(..., ge=1, le=5)
    focus_areas: list[FrictionCategory] | None = None
