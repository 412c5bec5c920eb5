"""
Run orchestrator: drives one persona through one page until it finishes,
gives up, runs out of steps or is stopped.

Everything a run writes goes through the repositories and is mirrored to the
broadcast hub. The terminal transition happens once, in `_finalize`, which is
always reached and never raises.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.orm import Session

from agent.errors import ActionExecutionError, AgentAlreadyRunningError, BrowserLaunchError
from app.contracts.decision import ActionType, AgentAction, Decision
from app.contracts.friction import FrictionCategory, FrictionPattern, FrictionSeverity
from app.contracts.recommendation import Recommendation, fallback_recommendation
from app.contracts.run_summary import RunSummary
from app.contracts.runs import EventType, FrictionPointRead, RunEventRead, RunRead
from app.core.context import bound_run_id
from app.domain.run_status import resolve_terminal_status
from app.services.run_events import RunBroadcastHub
from browser.screenshots import ScreenshotStore
from db.models.run import RunStatus
from db.repos.friction_points_repo import count_friction_points_for_run, create_friction_point
from db.repos.run_events_repo import append_event
from db.repos.runs_repo import RunNotFoundError, finalize_run, get_run, update_run_status
from db.utils.time import utcnow
from friction.patterns import InteractionTracker, detect_interaction_pattern
from friction.severity import weight_severity
from personas.types import Persona

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 50
DEFAULT_STEP_DELAY_S = 1.0

STUCK_DEFAULT_REASON = "Agent got stuck"
EXECUTION_ERRORS_REASON = "Abandoned: too many errors during execution"
UNSPECIFIED_FRICTION = "Unspecified friction"
RECOMMENDATIONS_FAILED_TITLE = "Unable to generate recommendations"
RECOMMENDATIONS_FAILED_DESCRIPTION = "An error occurred while generating recommendations."


@dataclass
class _RunContext:
    run_id: uuid.UUID
    persona: Persona
    goal: str = ""
    url: str = ""
    tracker: InteractionTracker = field(default_factory=InteractionTracker)
    browser: Any = None
    started: bool = False
    steps: int = 0
    friction_count: int = 0
    goal_reached: bool = False
    abandon_reason: str | None = None
    persona_name: str | None = None
    created_at: datetime | None = None
    events: list[RunEventRead] = field(default_factory=list)
    frictions: list[FrictionPointRead] = field(default_factory=list)


class RunOrchestrator:
    def __init__(
        self,
        *,
        llm: Any,
        browser_factory: Callable[[], Any],
        hub: RunBroadcastHub,
        session_factory: Callable[[], Session],
        screenshots: ScreenshotStore,
        max_steps: int = DEFAULT_MAX_STEPS,
        step_delay_s: float = DEFAULT_STEP_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.llm = llm
        self.browser_factory = browser_factory
        self.hub = hub
        self.session_factory = session_factory
        self.screenshots = screenshots
        self.max_steps = max_steps
        self.step_delay_s = step_delay_s
        self._sleep = sleep
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._active_run_id: uuid.UUID | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._active_run_id is not None

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask the active run to stop at the next step boundary."""
        self._stop.set()

    def run(self, run_id: uuid.UUID, persona: Persona) -> RunRead | None:
        with self._lock:
            if self._active_run_id is not None:
                raise AgentAlreadyRunningError(f"Agent is already running run {self._active_run_id}")
            self._active_run_id = run_id

        ctx = _RunContext(run_id=run_id, persona=persona)
        db = self.session_factory()
        try:
            with bound_run_id(str(run_id)):
                try:
                    self._execute(db, ctx)
                except Exception as e:
                    logger.exception("Run failed unexpectedly")
                    self._guard("rollback", db.rollback)
                    if ctx.abandon_reason is None:
                        ctx.abandon_reason = f"Unexpected error: {e}"
                    if ctx.started:
                        self._guard("record error", self._record_event, db, ctx, EventType.ERROR, {"error": str(e)})
                    self._guard("broadcast error", self.hub.broadcast, run_id, "error", {"message": str(e)})
                return self._finalize(db, ctx)
        finally:
            db.close()
            with self._lock:
                self._active_run_id = None

    # -- main loop -----------------------------------------------------------

    def _execute(self, db: Session, ctx: _RunContext) -> None:
        run = get_run(db, ctx.run_id)
        if run is None:
            raise RunNotFoundError(f"Run not found: {ctx.run_id}")
        ctx.goal, ctx.url = run.goal, run.url
        ctx.persona_name, ctx.created_at = run.persona_name, run.created_at

        update_run_status(db, run_id=ctx.run_id, to_status=RunStatus.RUNNING, expected_from=RunStatus.PENDING)
        ctx.started = True
        logger.info("Run started persona=%s url=%s", ctx.persona.id, ctx.url)

        ctx.browser = self.browser_factory()
        try:
            ctx.browser.launch(ctx.persona.constraints.viewport)
        except BrowserLaunchError as e:
            logger.error("Browser launch failed: %s", e)
            ctx.abandon_reason = str(e)
            self._record_event(db, ctx, EventType.ERROR, {"error": str(e)})
            return

        ctx.browser.navigate(ctx.url)
        ctx.tracker.visited_urls.append(ctx.url)
        self._record_event(db, ctx, EventType.NAVIGATION, {"url": ctx.url}, screenshot=True)

        for step in range(1, self.max_steps + 1):
            if self._stop.is_set():
                logger.info("Stop requested, leaving loop before step %s", step)
                return
            ctx.steps = step
            if self._step(db, ctx):
                return
            self._sleep(self.step_delay_s)

        if self._stop.is_set():
            return
        self._abandon(db, ctx, f"Abandoned: max steps ({self.max_steps}) reached without completing goal")

    def _step(self, db: Session, ctx: _RunContext) -> bool:
        """Run one step. Returns True once the run has reached an end condition."""
        persona = ctx.persona
        page_state = ctx.browser.get_page_state()
        screenshot_b64 = ctx.browser.capture_screenshot_base64()

        try:
            decision = self.llm.decide_next_action(
                goal=ctx.goal,
                persona=persona,
                page_state=page_state,
                history=list(ctx.events),
                screenshot_b64=screenshot_b64,
            )
        except Exception as e:
            logger.warning("Decision call failed step=%s: %s", ctx.steps, e)
            self._record_event(db, ctx, EventType.ERROR, {"error": f"Decision failed: {e}"})
            decision = Decision.stuck(
                observation="No decision available",
                reasoning=f"Decision call failed: {e}",
                action_reasoning=f"Could not decide on a next action: {e}",
            )

        self._record_event(
            db,
            ctx,
            EventType.REASONING,
            {"observation": decision.observation, "reasoning": decision.reasoning},
        )

        detected = detect_interaction_pattern(decision.action, ctx.events, ctx.tracker)

        if decision.friction_detected:
            self._record_friction(db, ctx, decision, detected)
            ctx.friction_count += 1
            threshold = persona.max_friction_points
            if ctx.friction_count >= threshold:
                self._abandon(
                    db,
                    ctx,
                    f"Abandoned: too much friction ({ctx.friction_count} friction points "
                    f"reached threshold of {threshold})",
                    frictionCount=ctx.friction_count,
                    threshold=threshold,
                )
                return True

        action = decision.action
        if action.type == ActionType.DONE:
            ctx.goal_reached = True
            self._record_event(
                db,
                ctx,
                EventType.GOAL_REACHED,
                {"reasoning": action.reasoning or decision.reasoning},
                screenshot=True,
            )
            logger.info("Goal reached step=%s", ctx.steps)
            return True

        if action.type == ActionType.STUCK:
            self._abandon(db, ctx, action.reasoning or STUCK_DEFAULT_REASON)
            return True

        try:
            event_type, data = self._perform(ctx, action)
        except ActionExecutionError as e:
            logger.warning("Action failed step=%s action=%s: %s", ctx.steps, action.type.value, e)
            self._record_event(
                db,
                ctx,
                EventType.ERROR,
                {"action": action.type.value, "target": action.target, "error": str(e)},
            )
            ctx.friction_count += 1
            if ctx.friction_count >= persona.max_friction_points:
                self._abandon(db, ctx, EXECUTION_ERRORS_REASON)
                return True
            return False

        self._record_event(db, ctx, event_type, data, screenshot=True)
        return False

    def _perform(self, ctx: _RunContext, action: AgentAction) -> tuple[EventType, dict[str, Any]]:
        browser = ctx.browser
        kind = action.type
        try:
            if kind == ActionType.CLICK:
                if not action.target:
                    raise ActionExecutionError("Click action requires a target", action=kind.value)
                browser.click(action.target)
                return EventType.CLICK, {"target": action.target}

            if kind == ActionType.TYPE:
                if not action.target:
                    raise ActionExecutionError("Type action requires a target", action=kind.value)
                text = action.value or ""
                browser.type(action.target, text)
                return EventType.TYPE, {"target": action.target, "value": text}

            if kind == ActionType.SCROLL:
                direction = action.value if action.value in ("up", "down") else "down"
                browser.scroll(direction)
                return EventType.SCROLL, {"direction": direction}

            if kind == ActionType.NAVIGATE:
                if not action.target:
                    raise ActionExecutionError("Navigate action requires a target URL", action=kind.value)
                browser.navigate(action.target)
                return EventType.NAVIGATION, {"url": action.target}
        except ActionExecutionError:
            raise
        except Exception as e:
            raise ActionExecutionError(str(e), action=kind.value, target=action.target) from e

        raise ActionExecutionError(f"Unsupported action: {kind.value}", action=kind.value)

    def _abandon(self, db: Session, ctx: _RunContext, reason: str, **extra: Any) -> None:
        ctx.abandon_reason = reason
        logger.info("Run abandoned step=%s reason=%s", ctx.steps, reason)
        self._record_event(db, ctx, EventType.ABANDONED, {"reason": reason, **extra}, screenshot=True)

    # -- persistence + broadcast ---------------------------------------------

    def _capture(self, ctx: _RunContext) -> str | None:
        if ctx.browser is None:
            return None
        shot_id = self.screenshots.new_id()
        try:
            ctx.browser.capture_screenshot(self.screenshots.path_for(ctx.run_id, shot_id))
        except Exception as e:
            logger.warning("Screenshot failed: %s", e)
            return None
        return self.screenshots.url_for(ctx.run_id, shot_id)

    def _record_event(
        self,
        db: Session,
        ctx: _RunContext,
        event_type: EventType,
        data: dict[str, Any],
        *,
        screenshot: bool = False,
        screenshot_url: str | None = None,
    ) -> RunEventRead:
        if screenshot and screenshot_url is None:
            screenshot_url = self._capture(ctx)
        with self.hub.hold(ctx.run_id):
            row = append_event(
                db,
                run_id=ctx.run_id,
                type=event_type.value,
                data=data,
                screenshot_path=screenshot_url,
            )
            event = RunEventRead.model_validate(row)
            ctx.events.append(event)
            self.hub.broadcast(ctx.run_id, "event", event.to_wire())
        return event

    def _record_friction(
        self,
        db: Session,
        ctx: _RunContext,
        decision: Decision,
        detected: FrictionPattern | None,
    ) -> FrictionPointRead:
        assessment = decision.action.friction_assessment
        category = assessment.category or FrictionCategory.CONTENT_CLARITY
        base = assessment.severity or FrictionSeverity.MEDIUM
        severity = weight_severity(base, ctx.persona.priorities.for_category(category))
        pattern = assessment.pattern or detected
        screenshot_url = self._capture(ctx)

        with self.hub.hold(ctx.run_id):
            row = create_friction_point(
                db,
                run_id=ctx.run_id,
                description=assessment.description or UNSPECIFIED_FRICTION,
                severity=severity.value,
                category=category.value,
                pattern=pattern.value if pattern else None,
                element=assessment.element.model_dump(by_alias=True, exclude_none=True) if assessment.element else None,
                heuristic_violation=assessment.heuristic_violation,
                wcag_violation=assessment.wcag_violation,
                screenshot_path=screenshot_url,
            )
            friction = FrictionPointRead.model_validate(row)
            ctx.frictions.append(friction)
            self.hub.broadcast(ctx.run_id, "friction", friction.to_wire())

        if severity.value != base.value:
            logger.debug("Severity weighted %s -> %s category=%s", base.value, severity.value, category.value)

        wire = friction.to_wire()
        self._record_event(
            db,
            ctx,
            EventType.FRICTION,
            {
                "frictionPointId": wire["id"],
                "description": wire["description"],
                "severity": wire["severity"],
                "category": wire["category"],
                "pattern": wire["pattern"],
            },
            screenshot_url=screenshot_url,
        )
        return friction

    # -- finalization --------------------------------------------------------

    def _guard(self, label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception("Finalization step failed: %s", label)
            return None

    def _release_browser(self, ctx: _RunContext) -> None:
        if ctx.browser is not None:
            ctx.browser.close()
            ctx.browser = None

    def _recommendations(self, ctx: _RunContext) -> list[Recommendation]:
        try:
            return self.llm.generate_recommendations(
                goal=ctx.goal,
                persona=ctx.persona,
                events=list(ctx.events),
                friction_points=list(ctx.frictions),
            )
        except Exception as e:
            logger.warning("Recommendation generation failed: %s", e)
            return [
                fallback_recommendation(
                    ctx.persona.id,
                    title=RECOMMENDATIONS_FAILED_TITLE,
                    description=RECOMMENDATIONS_FAILED_DESCRIPTION,
                )
            ]

    def _finalize(self, db: Session, ctx: _RunContext) -> RunRead | None:
        self._guard("release browser", self._release_browser, ctx)
        self._guard("rollback", db.rollback)

        recommendations = self._guard("recommendations", self._recommendations, ctx) or []
        count = self._guard("count friction points", count_friction_points_for_run, db, run_id=ctx.run_id)
        summary = RunSummary(
            steps_completed=ctx.steps,
            goal_reached=ctx.goal_reached,
            abandon_reason=ctx.abandon_reason,
            friction_point_count=count if count is not None else len(ctx.frictions),
            recommendations=recommendations,
        )
        status = resolve_terminal_status(stop_requested=self._stop.is_set(), goal_reached=ctx.goal_reached)

        row = self._guard(
            "finalize run",
            finalize_run,
            db,
            run_id=ctx.run_id,
            to_status=status,
            summary=summary.to_stored(),
            expected_from=RunStatus.RUNNING if ctx.started else RunStatus.PENDING,
        )
        if row is None:
            # one retry from whatever state the failed write left behind;
            # a run that already reached a terminal status is refused by the repo
            self._guard("rollback", db.rollback)
            row = self._guard(
                "finalize run (retry)",
                finalize_run,
                db,
                run_id=ctx.run_id,
                to_status=status,
                summary=summary.to_stored(),
                expected_from=None,
            )

        result = None
        if row is not None:
            result = RunRead.model_validate(row)
            wire = result.to_wire()
        else:
            logger.error("Run status could not be persisted status=%s", status.value)
            wire = self._guard("build complete payload", lambda: self._unsaved_run(ctx, status, summary).to_wire())
        logger.info(
            "Run finished status=%s steps=%s friction=%s",
            status.value,
            summary.steps_completed,
            summary.friction_point_count,
        )
        if wire is not None:
            self._guard("broadcast complete", self.hub.broadcast, ctx.run_id, "complete", wire)
        self._guard("schedule teardown", self.hub.schedule_teardown, ctx.run_id)
        return result

    def _unsaved_run(self, ctx: _RunContext, status: RunStatus, summary: RunSummary) -> RunRead:
        completed_at = utcnow()
        return RunRead(
            id=ctx.run_id,
            url=ctx.url,
            goal=ctx.goal,
            persona_id=ctx.persona.id,
            persona_name=ctx.persona_name or ctx.persona.name,
            status=status.value,
            created_at=ctx.created_at or completed_at,
            completed_at=completed_at,
            summary=summary,
        )
