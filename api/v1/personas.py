from __future__ import annotations

from fastapi import APIRouter

from personas.catalog import list_personas

router = APIRouter(prefix="/personas", tags=["personas"])


@router.get("")
def list_personas_endpoint() -> list[dict]:
    return [persona.to_wire() for persona in list_personas()]
