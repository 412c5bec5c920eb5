from __future__ import annotations

import uuid

from app.contracts.friction import FrictionCategory
from personas.types import (
    DEVICE_VIEWPORTS,
    CustomPersonaInput,
    Persona,
    PersonaCategory,
    PersonaConstraints,
    PriorityVector,
)

DEFAULT_PRIORITY = 3
FOCUS_PRIORITY = 5
MAX_EXAMPLE_FRICTIONS = 8

_PATIENCE = {
    "low": "You have very little patience and expect things to work quickly and smoothly.",
    "medium": "You have moderate patience but still expect a reasonably smooth experience.",
    "high": "You are patient and willing to figure things out, but you still notice when things are confusing.",
}

_READING = {
    "skim": "You SKIM content, looking for obvious buttons and key information. You skip long paragraphs.",
    "thorough": "You READ everything carefully before acting. You want to understand what each option does.",
    "skip": "You SKIP most content, assuming you already know how things work.",
}

_TECH = {
    "low": "You are not very familiar with technology or modern web conventions. You prefer simple, clear interfaces.",
    "moderate": "You are comfortable with basic technology but unusual patterns or advanced features can confuse you.",
    "high": "You are tech-savvy and know common web patterns. You expect efficient, modern interfaces.",
}

_DEVICE = {
    "mobile": "You are on a mobile phone with touch input and expect large tap targets and a mobile-friendly layout.",
    "tablet": "You are on a tablet with touch input and expect a responsive layout for medium screens.",
    "desktop": "You are on a desktop computer with mouse and keyboard and expect full functionality.",
}

_FOCUS_NAMES = {
    FrictionCategory.NAVIGATION: "being able to find where to go",
    FrictionCategory.FORMS: "form usability and validation",
    FrictionCategory.CONTENT_CLARITY: "clear and understandable content",
    FrictionCategory.VISUAL_DESIGN: "visual design and layout",
    FrictionCategory.PERFORMANCE: "page speed and responsiveness",
    FrictionCategory.ACCESSIBILITY: "accessibility features",
}


def _derive_constraints(spec: CustomPersonaInput) -> PersonaConstraints:
    mobile = spec.device == "mobile"

    if spec.reading_style == "thorough":
        scroll = "thorough"
    elif spec.reading_style == "skip":
        scroll = "minimal"
    else:
        scroll = "normal"

    if spec.tech_literacy == "high":
        typing = "fast"
    elif spec.tech_literacy == "low":
        typing = "slow"
    else:
        typing = "moderate"

    if mobile or spec.tech_literacy == "low":
        precision = "low"
    else:
        precision = "high"

    if spec.patience == "low":
        attention = "short"
    elif spec.patience == "high":
        attention = "extended"
    else:
        attention = "moderate"

    return PersonaConstraints(
        max_friction_points=spec.max_friction_points,
        reading_style=spec.reading_style,
        patience=spec.patience,
        viewport=DEVICE_VIEWPORTS[spec.device],
        scroll_behavior=scroll,
        typing_speed=typing,
        click_precision=precision,
        attention_span=attention,
        tech_literacy=spec.tech_literacy,
        input_method="touch" if spec.device in ("mobile", "tablet") else "mouse",
    )


def _example_frictions(spec: CustomPersonaInput) -> tuple[str, ...]:
    focus = set(spec.focus_areas or ())
    hints: list[str] = []

    if spec.patience == "low":
        hints += ["Slow loading pages", "Too many steps to complete a task", "Unclear call-to-action buttons"]

    if spec.reading_style == "skim":
        hints += ["Important information buried in paragraphs", "No visual hierarchy or scannable content"]
    elif spec.reading_style == "thorough":
        hints += ["Missing explanations for options", "Vague or unclear button labels"]

    if spec.tech_literacy == "low":
        hints += [
            "Technical jargon without explanation",
            "Unfamiliar icons without text labels",
            "Complex multi-step processes",
        ]

    if spec.device == "mobile":
        hints += ["Small tap targets", "Content requiring horizontal scroll", "Pop-ups hard to dismiss on mobile"]

    if FrictionCategory.ACCESSIBILITY in focus:
        hints += ["Poor color contrast", "Missing form labels", "Elements not reachable via keyboard"]
    if FrictionCategory.FORMS in focus:
        hints += ["Confusing validation errors", "Required fields not clearly marked", "Too many form fields"]
    if FrictionCategory.NAVIGATION in focus:
        hints += ["Confusing menu structure", "No clear path to complete the goal"]

    return tuple(hints[:MAX_EXAMPLE_FRICTIONS])


def _system_prompt(spec: CustomPersonaInput) -> str:
    traits = [
        _PATIENCE[spec.patience],
        _READING[spec.reading_style],
        _TECH[spec.tech_literacy],
        _DEVICE[spec.device],
        f"You will abandon the task if you hit more than {spec.max_friction_points} friction points.",
    ]

    analysis: list[str] = []
    if spec.reading_style == "skim":
        analysis += ["Look for the most prominent elements and obvious actions", "Skip long paragraphs or dense text"]
    elif spec.reading_style == "thorough":
        analysis += ["Read all visible text before deciding what to do", "Look for explanations and help text"]
    elif spec.reading_style == "skip":
        analysis += ["Assume you know how standard patterns work", "Look for ways to bypass instructions or tutorials"]
    if spec.tech_literacy == "low":
        analysis += ["Get confused by unfamiliar patterns or technical terms", "Prefer simple, obvious interfaces"]
    if spec.device == "mobile":
        analysis += [
            "Expect touch-friendly tap targets (at least 44x44 pixels)",
            "Get frustrated by layouts that are not optimized for mobile",
        ]

    frustrations = [
        "Things don't work as expected",
        "You can't figure out the next step",
        "The interface doesn't match your expectations",
    ]
    if spec.patience == "low":
        frustrations.append("Anything takes too long or requires too many steps")
    if spec.tech_literacy == "low":
        frustrations.append("You encounter jargon or confusing terminology")

    lines = [f"You are a custom test user: {spec.name}.", "", spec.description, "", "Your behavioral traits:"]
    lines += [f"- {t}" for t in traits]
    if spec.focus_areas:
        focuses = ", ".join(_FOCUS_NAMES[FrictionCategory(a)] for a in spec.focus_areas)
        lines.append(f"You particularly care about: {focuses}. Issues in these areas frustrate you more than others.")
    lines += ["", "When analyzing pages:"]
    lines += [f"- {a}" for a in analysis]
    lines += ["", "Express frustration when:"]
    lines += [f"- {f}" for f in frustrations]
    return "\n".join(lines)


def create_custom_persona(spec: CustomPersonaInput) -> Persona:
    """
    Synthesize a full persona from the short form a user fills in.

    Everything but the id is a pure function of the input.
    """
    priorities = PriorityVector.uniform(DEFAULT_PRIORITY)
    if spec.focus_areas:
        priorities = priorities.with_focus(spec.focus_areas, value=FOCUS_PRIORITY)

    return Persona(
        id=f"custom-{uuid.uuid4().hex[:12]}",
        name=spec.name,
        description=spec.description,
        category=PersonaCategory.GENERAL,
        priorities=priorities,
        example_frictions=_example_frictions(spec),
        constraints=_derive_constraints(spec),
        system_prompt=_system_prompt(spec),
    )
