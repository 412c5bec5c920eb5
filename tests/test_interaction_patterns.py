from __future__ import annotations

from types import SimpleNamespace

from app.contracts.decision import AgentAction
from app.contracts.friction import FrictionPattern
from friction.patterns import InteractionTracker, detect_interaction_pattern


def ev(type_: str, **data):
    return SimpleNamespace(type=type_, data=data)


def act(type_: str, target: str | None = None, value: str | None = None) -> AgentAction:
    return AgentAction(type=type_, target=target, value=value)


def test_second_click_on_same_target_is_repeated_clicks():
    tracker = InteractionTracker()
    events = [ev("navigation", url="https://shop.test/")]

    assert detect_interaction_pattern(act("click", "Submit"), events, tracker) is None
    events.append(ev("click", target="Submit"))
    assert detect_interaction_pattern(act("click", "Submit"), events, tracker) == FrictionPattern.REPEATED_CLICKS
    assert tracker.click_targets["Submit"] == 2


def test_navigate_to_visited_url_is_backtracking():
    tracker = InteractionTracker(visited_urls=["https://shop.test/"])
    pattern = detect_interaction_pattern(act("navigate", "https://shop.test/"), [], tracker)
    assert pattern == FrictionPattern.BACKTRACKING
    # a revisit is not appended twice
    assert tracker.visited_urls == ["https://shop.test/"]


def test_duplicate_url_in_recent_navigation_events_is_backtracking():
    tracker = InteractionTracker()
    events = [
        ev("navigation", url="https://shop.test/"),
        ev("navigation", url="https://shop.test/cart"),
        ev("navigation", url="https://shop.test/"),
    ]
    assert detect_interaction_pattern(act("click", "Checkout"), events, tracker) == FrictionPattern.BACKTRACKING


def test_third_scroll_is_scroll_hunting():
    tracker = InteractionTracker()
    events: list = []
    for _ in range(2):
        assert detect_interaction_pattern(act("scroll", value="down"), events, tracker) is None
        events.append(ev("scroll", direction="down"))
    assert detect_interaction_pattern(act("scroll", value="down"), events, tracker) == FrictionPattern.SCROLL_HUNTING


def test_scroll_direction_reversals_are_scroll_hunting():
    tracker = InteractionTracker()
    events = [ev("scroll", direction="down"), ev("scroll", direction="up"), ev("scroll", direction="down")]
    assert detect_interaction_pattern(act("scroll", value="up"), events, tracker) == FrictionPattern.SCROLL_HUNTING


def test_scroll_history_alone_does_not_flag_a_click():
    tracker = InteractionTracker(scroll_count=5)
    events = [ev("scroll", direction="down"), ev("scroll", direction="up"), ev("scroll", direction="down")]
    assert detect_interaction_pattern(act("click", "Buy"), events, tracker) is None


def test_navigating_away_after_typing_is_form_abandonment():
    tracker = InteractionTracker()
    events = [ev("navigation", url="https://shop.test/signup")]
    detect_interaction_pattern(act("type", "Email", "a@b.c"), events, tracker)
    events.append(ev("type", target="Email", value="a@b.c"))

    pattern = detect_interaction_pattern(act("navigate", "https://shop.test/help"), events, tracker)
    assert pattern == FrictionPattern.FORM_ABANDONMENT


def test_form_abandonment_skipped_after_submit_click():
    tracker = InteractionTracker(form_started=True)
    events = [
        ev("navigation", url="https://shop.test/signup"),
        ev("type", target="Email", value="a@b.c"),
        ev("click", target="Continue"),
    ]
    assert detect_interaction_pattern(act("navigate", "https://shop.test/help"), events, tracker) is None


def test_click_away_from_form_is_not_form_abandonment():
    tracker = InteractionTracker(form_started=True)
    events = [ev("navigation", url="https://shop.test/signup"), ev("type", target="Email", value="a@b.c")]
    assert detect_interaction_pattern(act("click", "Home"), events, tracker) is None


def test_many_reasoning_events_without_actions_is_hesitation():
    tracker = InteractionTracker()
    events = [ev("navigation", url="https://shop.test/")] + [ev("reasoning", reasoning="hmm")] * 4
    assert detect_interaction_pattern(act("click", "Pricing"), events, tracker) == FrictionPattern.HESITATION


def test_recent_error_is_error_recovery():
    tracker = InteractionTracker()
    events = [
        ev("navigation", url="https://shop.test/"),
        ev("error", action="click", target="Buy", error="not found"),
        ev("reasoning", reasoning="try again"),
    ]
    assert detect_interaction_pattern(act("click", "Buy now"), events, tracker) == FrictionPattern.ERROR_RECOVERY


def test_repeated_clicks_wins_over_error_recovery():
    tracker = InteractionTracker(click_targets={"Buy": 1})
    events = [ev("error", action="click", target="Buy", error="not found")]
    assert detect_interaction_pattern(act("click", "Buy"), events, tracker) == FrictionPattern.REPEATED_CLICKS


def test_quiet_history_has_no_pattern():
    tracker = InteractionTracker()
    events = [ev("navigation", url="https://shop.test/"), ev("reasoning", reasoning="looks fine")]
    assert detect_interaction_pattern(act("click", "Pricing"), events, tracker) is None
