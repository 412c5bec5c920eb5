"""
Behavioral friction patterns read off a run's interaction history.

The detector is a fallback: when the oracle flags friction without naming a
pattern, the label computed here is attached instead.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from app.contracts.decision import ActionType, AgentAction
from app.contracts.friction import FrictionPattern
from app.contracts.runs import EventType

REPEATED_CLICK_THRESHOLD = 2
BACKTRACK_WINDOW = 5
SCROLL_WINDOW = 5
SCROLL_HUNT_THRESHOLD = 3
SCROLL_REVERSAL_THRESHOLD = 2
FORM_TYPE_WINDOW = 3
FORM_SUBMIT_WINDOW = 5
HESITATION_WINDOW = 5
ERROR_WINDOW = 3

SUBMIT_KEYWORDS = ("submit", "continue", "next")

_ACTION_EVENTS = {EventType.CLICK.value, EventType.TYPE.value, EventType.NAVIGATION.value}


@dataclass
class InteractionTracker:
    """Per-run working memory for the detector. Never persisted."""

    click_targets: dict[str, int] = field(default_factory=dict)
    visited_urls: list[str] = field(default_factory=list)
    scroll_count: int = 0
    last_scroll_direction: str | None = None
    last_form_field: str | None = None
    form_started: bool = False

    def record(self, action: AgentAction) -> bool:
        """
        Fold the current action into the tracker.

        Returns True when the action navigates to a URL already visited.
        """
        revisit = False
        if action.type == ActionType.CLICK and action.target:
            self.click_targets[action.target] = self.click_targets.get(action.target, 0) + 1
        elif action.type == ActionType.NAVIGATE and action.target:
            revisit = action.target in self.visited_urls
            if not revisit:
                self.visited_urls.append(action.target)
        elif action.type == ActionType.SCROLL:
            self.scroll_count += 1
            self.last_scroll_direction = action.value or "down"
        elif action.type == ActionType.TYPE and action.target:
            self.form_started = True
            self.last_form_field = action.target
        return revisit


def _type(event: Any) -> str:
    t = getattr(event, "type", None)
    return t.value if isinstance(t, EventType) else str(t)


def _data(event: Any) -> dict:
    return getattr(event, "data", None) or {}


def _submit_like(target: str | None) -> bool:
    if not target:
        return False
    lowered = target.lower()
    return any(k in lowered for k in SUBMIT_KEYWORDS)


def _direction_reversals(directions: Sequence[str | None]) -> int:
    return sum(1 for prev, cur in zip(directions, directions[1:]) if prev != cur)


def detect_interaction_pattern(
    action: AgentAction,
    events: Sequence[Any],
    tracker: InteractionTracker,
) -> FrictionPattern | None:
    """
    Update `tracker` with `action`, then classify the recent history.

    `events` is the run's ordered history (anything with `.type` and `.data`).
    Rules are checked in a fixed order and the first match wins.
    """
    revisit = tracker.record(action)

    # 1. same target clicked again
    if action.type == ActionType.CLICK and action.target:
        if tracker.click_targets[action.target] >= REPEATED_CLICK_THRESHOLD:
            return FrictionPattern.REPEATED_CLICKS

    # 2. back to somewhere already seen
    if revisit:
        return FrictionPattern.BACKTRACKING
    nav_urls = [_data(e).get("url") for e in events if _type(e) == EventType.NAVIGATION.value][-BACKTRACK_WINDOW:]
    if len(nav_urls) >= 2 and len(set(nav_urls)) < len(nav_urls):
        return FrictionPattern.BACKTRACKING

    # 3. scrolling around looking for something
    if action.type == ActionType.SCROLL:
        directions = [_data(e).get("direction") for e in events if _type(e) == EventType.SCROLL.value][-SCROLL_WINDOW:]
        if (
            _direction_reversals(directions) >= SCROLL_REVERSAL_THRESHOLD
            or tracker.scroll_count >= SCROLL_HUNT_THRESHOLD
        ):
            return FrictionPattern.SCROLL_HUNTING

    # 4. left a half-filled form; only `navigate` counts here
    if tracker.form_started and action.type == ActionType.NAVIGATE and action.target and not _submit_like(action.target):
        typed_recently = any(_type(e) == EventType.TYPE.value for e in events[-FORM_TYPE_WINDOW:])
        submitted = any(
            _type(e) == EventType.CLICK.value and _submit_like(_data(e).get("target"))
            for e in events[-FORM_SUBMIT_WINDOW:]
        )
        if typed_recently and not submitted:
            return FrictionPattern.FORM_ABANDONMENT

    # 5. lots of thinking, little doing
    window = [_type(e) for e in events[-HESITATION_WINDOW:]]
    reasoning = sum(1 for t in window if t == EventType.REASONING.value)
    acting = sum(1 for t in window if t in _ACTION_EVENTS)
    if reasoning > 3 and acting < 2:
        return FrictionPattern.HESITATION

    # 6. recovering from an error
    if any(_type(e) == EventType.ERROR.value for e in events[-ERROR_WINDOW:]):
        return FrictionPattern.ERROR_RECOVERY

    return None
