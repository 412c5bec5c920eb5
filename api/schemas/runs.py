from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl

from personas.types import CustomPersonaInput, Device


class CreateRunRequest(BaseModel):
    url: HttpUrl
    goal: str = Field(..., min_length=1, max_length=5000)
    personaId: str | None = Field(default=None, max_length=128)
    customPersona: CustomPersonaInput | None = None
    device: Device | None = None


class CreateRunResponse(BaseModel):
    runId: UUID
    status: str
    personaId: str


class StopRunResponse(BaseModel):
    runId: UUID
    stopRequested: bool = True


class RunDetailResponse(BaseModel):
    run: dict[str, Any]
    events: list[dict[str, Any]]
    frictionPoints: list[dict[str, Any]]
