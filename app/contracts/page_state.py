from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ElementType = Literal["button", "link", "input", "text", "image", "form", "other"]


class BoundingBox(BaseModel):
    x: int
    y: int
    width: int
    height: int


class PageElement(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    type: ElementType = "other"
    text: str
    selector: str
    attributes: dict[str, str | None] = Field(default_factory=dict)
    bounding_box: BoundingBox | None = None


class PageState(BaseModel):
    """Snapshot of what the persona can currently see."""

    url: str
    title: str = ""
    elements: list[PageElement] = Field(default_factory=list)
