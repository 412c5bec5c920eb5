from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.contracts.recommendation import Recommendation


class RunSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    steps_completed: int = 0
    goal_reached: bool = False
    abandon_reason: str | None = None
    friction_point_count: int = 0
    recommendations: list[Recommendation] = Field(default_factory=list)

    def to_stored(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_stored(cls, raw: dict[str, Any] | None) -> "RunSummary | None":
        """
        Rebuild a summary from its persisted JSON.

        Older rows kept recommendations as plain strings (sometimes under
        `legacyRecommendations`); those are lifted into structured
        recommendations here so nothing past this point sees both shapes.
        """
        if not isinstance(raw, dict):
            return None
        data = dict(raw)
        items: list[Any] = list(data.get("recommendations") or [])
        items.extend(data.pop("legacyRecommendations", None) or [])

        recommendations: list[Recommendation] = []
        for item in items:
            if isinstance(item, str):
                text = item.strip()
                if text:
                    recommendations.append(Recommendation(title=text, description=text))
            elif isinstance(item, dict):
                recommendations.append(Recommendation.model_validate(item))
        data["recommendations"] = recommendations
        return cls.model_validate(data)
