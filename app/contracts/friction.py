from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FrictionCategory(str, Enum):
    NAVIGATION = "navigation"
    FORMS = "forms"
    CONTENT_CLARITY = "contentClarity"
    VISUAL_DESIGN = "visualDesign"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"


class FrictionSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FrictionPattern(str, Enum):
    REPEATED_CLICKS = "repeatedClicks"
    BACKTRACKING = "backtracking"
    SCROLL_HUNTING = "scrollHunting"
    FORM_ABANDONMENT = "formAbandonment"
    HESITATION = "hesitation"
    ERROR_RECOVERY = "errorRecovery"


class ElementReference(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    selector: str
    visible_text: str | None = None
    element_type: str = "other"
