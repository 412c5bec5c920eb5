from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from agent.runner import RunOrchestrator
from app.contracts.runs import FrictionPointRead, RunEventRead, RunRead
from app.core.context import bound_run_id
from app.services.run_events import RunBroadcastHub, get_hub
from app.services.run_registry import RunRegistry, get_registry
from db.models.run import Run, RunStatus
from db.repos.friction_points_repo import list_friction_points_for_run
from db.repos.run_events_repo import list_events_for_run
from db.repos.runs_repo import RunNotFoundError, create_run, get_run
from personas.catalog import get_persona, with_device
from personas.custom import create_custom_persona
from personas.types import CustomPersonaInput, Persona

logger = logging.getLogger(__name__)


class PersonaResolutionError(ValueError):
    pass


class RunNotRunningError(Exception):
    pass


def resolve_persona(
    *,
    persona_id: str | None,
    custom_persona: CustomPersonaInput | None,
    device: str | None = None,
) -> Persona:
    """A custom persona wins over an id; a device only re-targets built-ins."""
    if custom_persona is not None:
        return create_custom_persona(custom_persona)
    if not persona_id:
        raise PersonaResolutionError("Either personaId or customPersona is required")
    persona = get_persona(persona_id)
    if persona is None:
        raise PersonaResolutionError(f"Unknown persona: {persona_id}")
    return with_device(persona, device)


def run_detail(db: Session, run: Run) -> dict[str, Any]:
    events = list_events_for_run(db, run_id=run.id)
    frictions = list_friction_points_for_run(db, run_id=run.id)
    return {
        "run": RunRead.model_validate(run).to_wire(),
        "events": [RunEventRead.model_validate(e).to_wire() for e in events],
        "frictionPoints": [FrictionPointRead.model_validate(f).to_wire() for f in frictions],
    }


def build_snapshot(run_id: UUID, *, session_factory: Callable[[], Session] | None = None) -> dict[str, Any]:
    if session_factory is None:
        from db.session import SessionLocal

        session_factory = SessionLocal
    with session_factory() as db:
        run = get_run(db, run_id)
        if run is None:
            raise RunNotFoundError(f"Run not found: {run_id}")
        return run_detail(db, run)


def build_orchestrator() -> RunOrchestrator:
    from app.config import get_settings
    from browser.screenshots import get_screenshot_store
    from browser.surface import get_browser_surface
    from db.session import SessionLocal
    from llm.client import get_llm_client

    settings = get_settings()
    return RunOrchestrator(
        llm=get_llm_client(),
        browser_factory=get_browser_surface,
        hub=get_hub(),
        session_factory=SessionLocal,
        screenshots=get_screenshot_store(),
        max_steps=settings.max_steps,
        step_delay_s=settings.step_delay_s,
    )


def _run_in_background(
    orchestrator: RunOrchestrator,
    registry: RunRegistry,
    run_id: UUID,
    persona: Persona,
) -> None:
    with bound_run_id(str(run_id)):
        try:
            orchestrator.run(run_id, persona)
        except Exception:
            logger.exception("Background run crashed")
        finally:
            registry.release(run_id)


def create_and_start_run(
    db: Session,
    *,
    url: str,
    goal: str,
    persona: Persona,
    registry: RunRegistry | None = None,
    hub: RunBroadcastHub | None = None,
    orchestrator_factory: Callable[[], RunOrchestrator] | None = None,
) -> Run:
    """
    Admit, persist and launch a run on its own thread.

    Raises RunAdmissionError (nothing persisted) when the process is at capacity.
    """
    registry = registry or get_registry()
    hub = hub or get_hub()
    factory = orchestrator_factory or build_orchestrator

    run_id = uuid.uuid4()
    registry.reserve(run_id)
    try:
        run = create_run(
            db,
            url=url,
            goal=goal,
            persona_id=persona.id,
            persona_name=persona.name,
            run_id=run_id,
        )
        hub.open(run_id)
        orchestrator = factory()
        registry.attach(run_id, orchestrator)
        thread = threading.Thread(
            target=_run_in_background,
            args=(orchestrator, registry, run_id, persona),
            name=f"run-{str(run_id)[:8]}",
            daemon=True,
        )
        thread.start()
    except Exception:
        registry.release(run_id)
        raise

    logger.info("Run created run_id=%s persona=%s url=%s", run_id, persona.id, url)
    return run


def stop_run(db: Session, *, run_id: UUID, registry: RunRegistry | None = None) -> Run:
    """Signal the run's orchestrator. The run thread records the stopped status itself."""
    registry = registry or get_registry()
    run = get_run(db, run_id)
    if run is None:
        raise RunNotFoundError(f"Run not found: {run_id}")

    orchestrator = registry.get(run_id)
    active = run.status in (RunStatus.PENDING.value, RunStatus.RUNNING.value)
    if orchestrator is None or not active:
        raise RunNotRunningError(f"Run is not running (status={run.status})")

    orchestrator.stop()
    logger.info("Stop requested run_id=%s", run_id)
    return run
