from __future__ import annotations

import json
from typing import Any, Dict, Sequence

from app.contracts.page_state import PageState
from personas.types import Persona

HISTORY_WINDOW = 10
RECOMMENDATION_EVENT_WINDOW = 20

_HISTORY_TYPES = ("navigation", "click", "type", "scroll", "reasoning")
_RECOMMENDATION_EVENT_TYPES = ("click", "type", "reasoning", "friction")

DECISION_INSTRUCTIONS = """## Your Task
Based on the current page and your goal, decide what to do next.

Consider:
1. What do you observe on this page?
2. How does it relate to your goal?
3. Is anything causing you friction or confusion?
4. Which action should you take?

## Friction Detection
Report friction when something matches the concerns of the user you are playing.

Example frictions for you:
{example_frictions}

Friction categories:
- "navigation": can't find where to go, confusing menus, unclear paths
- "forms": validation issues, unclear labels, too many fields, confusing inputs
- "contentClarity": jargon, unclear instructions, missing information
- "visualDesign": poor contrast, small targets, weak hierarchy, clutter
- "performance": slow loading, unresponsive elements
- "accessibility": WCAG violations, keyboard issues, missing labels

When you report friction also identify, where you can:
- pattern: repeatedClicks, backtracking, scrollHunting, formAbandonment, hesitation or errorRecovery
- element: the element at fault (selector, visible text, element type)
- heuristicViolation: e.g. "Nielsen #4: Consistency and standards"
- wcagViolation: e.g. "WCAG 2.4.4: Link Purpose"

Return ONLY valid JSON in this shape, no markdown:
{{
  "observation": "what you see and how it relates to the goal",
  "reasoning": "why you are choosing the next action",
  "action": {{
    "type": "click|type|scroll|navigate|done|stuck",
    "target": "element text or CSS selector (click/type), full URL (navigate), omitted for scroll",
    "value": "text to type (type) or up|down (scroll)",
    "reasoning": "why this specific action"
  }},
  "frictionAssessment": {{
    "detected": false,
    "description": "what is confusing or difficult",
    "severity": "low|medium|high",
    "category": "navigation|forms|contentClarity|visualDesign|performance|accessibility",
    "pattern": "repeatedClicks|backtracking|scrollHunting|formAbandonment|hesitation|errorRecovery",
    "element": {{"selector": "...", "visibleText": "...", "elementType": "button|link|input|text|image|form|other"}},
    "heuristicViolation": "Nielsen #N: ...",
    "wcagViolation": "WCAG X.X.X: ..."
  }}
}}

Action guidelines:
- "click": target is the EXACT visible text of the element (e.g. "Sign up") or the selector shown in parentheses
- "type": target is the field's placeholder or label, or "search" for search boxes; value is the text
- "scroll": no target needed
- "navigate": target is a full URL starting with https://
- "done": the goal has been achieved
- "stuck": something is blocking any further progress

Do not use vague targets like "search box" or "input field".

Stay in character:
- Reading style: {reading_style}
- Patience: {patience}
- Tech literacy: {tech_literacy}
- Input method: {input_method}
- You give up after {max_friction_points} friction points"""

RECOMMENDATIONS_SYSTEM_PROMPT = (
    "You are a senior UX reviewer. Turn the findings of an automated usability run into "
    "specific, actionable recommendations. Return ONLY valid JSON, no markdown or commentary."
)

RECOMMENDATIONS_INSTRUCTIONS = """## Task
Give 3-5 specific, actionable recommendations to improve the experience. For each one consider
what needs fixing, how hard it is, what kind of change it is, who is affected, and the current
versus suggested state.

Recommendation types:
- "quickWin": easy fix, high impact
- "majorChange": significant change needing more effort
- "contentFix": copy, label or text improvement
- "bugFix": something actually broken
- "enhancement": nice to have

Effort:
- "easy": under an hour
- "medium": a few hours to a day
- "hard": significant development work

priority (1-5) follows severity times the persona's priority for that category.

Return JSON of the form:
{{
  "recommendations": [
    {{
      "title": "short action-oriented title",
      "description": "the issue and the fix",
      "type": "quickWin|majorChange|contentFix|bugFix|enhancement",
      "effort": "easy|medium|hard",
      "priority": 3,
      "category": "navigation|forms|contentClarity|visualDesign|performance|accessibility",
      "element": {{"selector": "...", "visibleText": "...", "elementType": "..."}},
      "currentState": "what is wrong today",
      "suggestedState": "what it should become",
      "affectedPersonas": ["{persona_id}"],
      "impactScore": 5
    }}
  ]
}}

Address the detected friction first, favour issues matching the persona's priorities,
prefer quick wins, and keep every suggestion concrete."""


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _event_type(event: Any) -> str:
    t = _field(event, "type")
    return getattr(t, "value", t)


def format_history(events: Sequence[Any]) -> str:
    relevant = [e for e in events if _event_type(e) in _HISTORY_TYPES][-HISTORY_WINDOW:]
    lines = []
    for i, event in enumerate(relevant, start=1):
        data = _field(event, "data") or {}
        t = _event_type(event)
        if t == "navigation":
            lines.append(f"{i}. Navigated to: {data.get('url')}")
        elif t == "click":
            lines.append(f"{i}. Clicked: {data.get('target')}")
        elif t == "type":
            lines.append(f"{i}. Typed \"{data.get('value')}\" into {data.get('target')}")
        elif t == "scroll":
            lines.append(f"{i}. Scrolled {data.get('direction')}")
        else:
            lines.append(f"{i}. Thought: {data.get('reasoning')}")
    return "\n".join(lines)


def format_elements(page_state: PageState) -> str:
    buttons = [e for e in page_state.elements if e.type == "button"]
    links = [e for e in page_state.elements if e.type == "link"]
    inputs = [e for e in page_state.elements if e.type == "input"]
    texts = [e for e in page_state.elements if e.type == "text"]

    sections = []
    if buttons:
        sections.append("Buttons:\n" + "\n".join(f'  - "{b.text}" ({b.selector})' for b in buttons))
    if links:
        sections.append(
            "Links:\n"
            + "\n".join(f'  - "{link.text}" ({link.selector}) -> {link.attributes.get("href") or ""}' for link in links)
        )
    if inputs:
        rows = []
        for field in inputs:
            kind = field.attributes.get("type") or "text"
            placeholder = field.attributes.get("placeholder")
            hint = f' (placeholder: "{placeholder}")' if placeholder else ""
            rows.append(f'  - [{kind}] target="{field.text}"{hint} (selector: {field.selector})')
        sections.append('Input fields (use the quoted text as target for "type"):\n' + "\n".join(rows))
    if texts:
        sections.append("Visible text:\n" + "\n".join(f"  - {t.text}" for t in texts))
    return "\n\n".join(sections) or "No interactive elements found."


def build_decision_prompt(
    *,
    goal: str,
    persona: Persona,
    page_state: PageState,
    history: Sequence[Any],
) -> Dict[str, str]:
    c = persona.constraints
    frictions = "\n".join(f"  - {f}" for f in persona.example_frictions) or "  - (none listed)"
    shown = min(len(history), HISTORY_WINDOW)
    user = "\n\n".join(
        [
            f"## Your Goal\n{goal}",
            f"## Current Page\nURL: {page_state.url}\nTitle: {page_state.title}",
            f"## Visible Elements\n{format_elements(page_state)}",
            f"## Action History (last {shown} actions)\n{format_history(history) or 'No actions taken yet.'}",
            DECISION_INSTRUCTIONS.format(
                example_frictions=frictions,
                reading_style=c.reading_style,
                patience=c.patience,
                tech_literacy=c.tech_literacy,
                input_method=c.input_method,
                max_friction_points=c.max_friction_points,
            ),
        ]
    )
    return {"system": persona.system_prompt, "user": user}


def _format_friction(fp: Any) -> str:
    line = f"- [{_field(fp, 'severity')}] [{_field(fp, 'category')}] {_field(fp, 'description')}"
    element = _field(fp, "element")
    if element:
        line += f" (Element: {_field(element, 'selector')})"
    for key in ("heuristic_violation", "wcag_violation"):
        value = _field(fp, key)
        if value:
            line += f" - {value}"
    return line


def build_recommendations_prompt(
    *,
    goal: str,
    persona: Persona,
    events: Sequence[Any],
    friction_points: Sequence[Any],
) -> Dict[str, str]:
    key_events = [e for e in events if _event_type(e) in _RECOMMENDATION_EVENT_TYPES][-RECOMMENDATION_EVENT_WINDOW:]
    events_text = "\n".join(
        f"- {_event_type(e)}: {json.dumps(_field(e, 'data') or {}, default=str)}" for e in key_events
    )
    friction_text = "\n".join(_format_friction(fp) for fp in friction_points)
    priorities_text = "\n".join(f"  - {category.value}: {value}/5" for category, value in persona.priorities.items())

    user = "\n\n".join(
        [
            f"## Test Goal\n{goal}",
            f"## Persona Tested\nId: {persona.id}\nName: {persona.name}\n"
            f"Description: {persona.description}\nCategory: {persona.category.value}",
            f"## Persona Priorities (1-5)\n{priorities_text}",
            f"## Friction Points Detected\n{friction_text or 'None detected'}",
            f"## Key Events\n{events_text or 'None recorded'}",
            RECOMMENDATIONS_INSTRUCTIONS.format(persona_id=persona.id),
        ]
    )
    return {"system": RECOMMENDATIONS_SYSTEM_PROMPT, "user": user}
