from __future__ import annotations

from app.contracts.friction import FrictionCategory
from personas import get_persona, list_personas, with_device
from personas.types import _FIELD_BY_CATEGORY, DEVICE_VIEWPORTS, PriorityVector


def test_catalog_ids_in_order():
    assert [p.id for p in list_personas()] == [
        "impatient-commuter",
        "cautious-first-timer",
        "power-user",
        "screen-reader-user",
        "elderly-user",
        "distracted-parent",
        "international-user",
        "skeptical-shopper",
    ]


def test_every_category_has_a_priority_field():
    assert set(_FIELD_BY_CATEGORY) == set(FrictionCategory)
    vector = PriorityVector.uniform(2)
    for category in FrictionCategory:
        assert vector.for_category(category) == 2


def test_builtin_personas_are_complete():
    for persona in list_personas():
        assert persona.system_prompt.strip()
        assert persona.max_friction_points >= 1
        assert persona.example_frictions
        for _category, value in persona.priorities.items():
            assert 1 <= value <= 5


def test_impatient_commuter_profile():
    persona = get_persona("impatient-commuter")
    assert persona is not None
    assert persona.max_friction_points == 2
    assert persona.priorities.for_category(FrictionCategory.NAVIGATION) == 5
    assert persona.priorities.for_category(FrictionCategory.ACCESSIBILITY) == 2
    assert persona.constraints.viewport.width == 390


def test_unknown_persona_is_none():
    assert get_persona("nobody") is None


def test_with_device_only_changes_viewport():
    persona = get_persona("power-user")
    mobile = with_device(persona, "mobile")

    assert mobile.constraints.viewport == DEVICE_VIEWPORTS["mobile"]
    assert mobile.id == persona.id
    assert mobile.priorities == persona.priorities
    assert mobile.max_friction_points == persona.max_friction_points
    assert with_device(persona, None) is persona
    assert with_device(persona, "smartwatch") is persona


def test_persona_wire_shape_is_camel_case():
    wire = get_persona("screen-reader-user").to_wire()
    assert wire["systemPrompt"]
    assert "contentClarity" in wire["priorities"]
    assert "maxFrictionPoints" in wire["constraints"]
