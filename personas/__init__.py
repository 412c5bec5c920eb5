from personas.catalog import BUILTIN_PERSONAS, get_persona, list_personas, with_device
from personas.custom import create_custom_persona
from personas.types import (
    DEVICE_VIEWPORTS,
    CustomPersonaInput,
    Persona,
    PersonaCategory,
    PersonaConstraints,
    PriorityVector,
    Viewport,
)

__all__ = [
    "BUILTIN_PERSONAS",
    "DEVICE_VIEWPORTS",
    "CustomPersonaInput",
    "Persona",
    "PersonaCategory",
    "PersonaConstraints",
    "PriorityVector",
    "Viewport",
    "create_custom_persona",
    "get_persona",
    "list_personas",
    "with_device",
]
