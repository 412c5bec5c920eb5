"""Stand-ins for the oracle and the browser so runs execute without network or Chromium."""
from __future__ import annotations

import time
import uuid
from typing import Any, Callable, Sequence

from agent.errors import ActionExecutionError, BrowserLaunchError
from agent.runner import RunOrchestrator
from app.contracts.decision import AgentAction, Decision, FrictionAssessment
from app.contracts.page_state import PageElement, PageState
from app.contracts.recommendation import Recommendation
from app.contracts.runs import RunRead
from app.services.run_events import RunBroadcastHub
from browser.screenshots import ScreenshotStore
from db.repos.runs_repo import get_run


def decision(
    action_type: str,
    target: str | None = None,
    value: str | None = None,
    *,
    reasoning: str = "",
    friction: dict[str, Any] | None = None,
) -> Decision:
    assessment = FrictionAssessment.model_validate(friction) if friction is not None else None
    return Decision(
        observation=f"looking at the page before {action_type}",
        reasoning=reasoning or f"going to {action_type}",
        action=AgentAction(
            type=action_type,
            target=target,
            value=value,
            reasoning=reasoning,
            friction_assessment=assessment,
        ),
    )


class FakeOracle:
    """Replays `script`; the last entry repeats once the script runs out."""

    def __init__(
        self,
        script: Sequence[Decision | Exception],
        *,
        recommendations: list[Recommendation] | None = None,
        fail_recommendations: bool = False,
        on_decide: Callable[[int], None] | None = None,
    ) -> None:
        self.script = list(script)
        self.recommendations = recommendations
        self.fail_recommendations = fail_recommendations
        self.on_decide = on_decide
        self.decide_calls = 0
        self.histories: list[list[Any]] = []
        self.recommendation_calls: list[dict[str, Any]] = []

    def decide_next_action(self, *, goal, persona, page_state, history, screenshot_b64=None) -> Decision:
        self.decide_calls += 1
        self.histories.append(list(history))
        if self.on_decide is not None:
            self.on_decide(self.decide_calls)
        item = self.script[min(self.decide_calls, len(self.script)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    def generate_recommendations(self, *, goal, persona, events, friction_points) -> list[Recommendation]:
        self.recommendation_calls.append(
            {"goal": goal, "events": list(events), "friction_points": list(friction_points)}
        )
        if self.fail_recommendations:
            raise RuntimeError("recommendation model unavailable")
        if self.recommendations is not None:
            return self.recommendations
        return [Recommendation(title="Enlarge the primary button", affected_personas=[persona.id])]


class FakeBrowser:
    def __init__(
        self,
        *,
        fail_launch: bool = False,
        failing_targets: Sequence[str] = (),
        fail_screenshots: bool = False,
    ) -> None:
        self.fail_launch = fail_launch
        self.failing_targets = set(failing_targets)
        self.fail_screenshots = fail_screenshots
        self.viewport = None
        self.url = "about:blank"
        self.actions: list[tuple[str, ...]] = []
        self.screenshots: list[str] = []
        self.closed = False

    def launch(self, viewport) -> None:
        if self.fail_launch:
            raise BrowserLaunchError("Failed to launch browser: chromium missing")
        self.viewport = viewport

    def navigate(self, url: str) -> None:
        self.actions.append(("navigate", url))
        self.url = url

    def current_url(self) -> str:
        return self.url

    def get_page_state(self) -> PageState:
        return PageState(
            url=self.url,
            title="Example Store",
            elements=[
                PageElement(type="button", text="Submit", selector="#submit"),
                PageElement(type="input", text="Email", selector="#email", attributes={"type": "email"}),
            ],
        )

    def capture_screenshot(self, path: str) -> None:
        if self.fail_screenshots:
            raise RuntimeError("screenshot failed")
        self.screenshots.append(path)

    def capture_screenshot_base64(self) -> str:
        return "iVBORw0KGgo="

    def click(self, target: str) -> None:
        if target in self.failing_targets:
            raise ActionExecutionError(f'Could not click "{target}"', action="click", target=target)
        self.actions.append(("click", target))

    def type(self, target: str, text: str) -> None:
        if target in self.failing_targets:
            raise ActionExecutionError(f'Could not type into "{target}"', action="type", target=target)
        self.actions.append(("type", target, text))

    def scroll(self, direction: str, amount: int = 300) -> None:
        self.actions.append(("scroll", direction))

    def close(self) -> None:
        self.closed = True


def make_orchestrator(
    oracle: FakeOracle,
    browser: FakeBrowser,
    *,
    screenshots_dir: str,
    hub: RunBroadcastHub | None = None,
    max_steps: int = 50,
) -> RunOrchestrator:
    from db.session import SessionLocal

    return RunOrchestrator(
        llm=oracle,
        browser_factory=lambda: browser,
        hub=hub or RunBroadcastHub(teardown_grace_s=0.05),
        session_factory=SessionLocal,
        screenshots=ScreenshotStore(screenshots_dir),
        max_steps=max_steps,
        step_delay_s=0,
        sleep=lambda _s: None,
    )


class RecordingObserver:
    def __init__(self, *, fail: bool = False) -> None:
        self.messages: list[dict[str, Any]] = []
        self.closed = False
        self.fail = fail

    def send(self, message: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("client went away")
        self.messages.append(message)

    def close(self) -> None:
        self.closed = True

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]


def wait_for_terminal(run_id: uuid.UUID, *, timeout_s: float = 10.0) -> RunRead:
    from db.session import SessionLocal

    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        with SessionLocal() as db:
            run = get_run(db, run_id)
            if run is not None and run.status in ("completed", "failed", "stopped"):
                return RunRead.model_validate(run)
        time.sleep(0.02)
    raise AssertionError(f"run {run_id} did not finish in {timeout_s}s")
