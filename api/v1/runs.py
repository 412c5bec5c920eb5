from __future__ import annotations

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from agent.errors import RunAdmissionError
from api.schemas.runs import (
    CreateRunRequest,
    CreateRunResponse,
    RunDetailResponse,
    StopRunResponse,
)
from app.contracts.runs import RunRead
from app.services import runs_service
from app.services.run_events import QueueObserver, get_hub
from app.services.runs_service import PersonaResolutionError, RunNotRunningError
from db.deps import get_db
from db.repos.runs_repo import RunNotFoundError, get_run, list_runs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["runs"])


def _sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=True)}\n\n"


@router.post("", response_model=CreateRunResponse, status_code=201)
def create_run_endpoint(payload: CreateRunRequest, db: Session = Depends(get_db)) -> CreateRunResponse:
    try:
        persona = runs_service.resolve_persona(
            persona_id=payload.personaId,
            custom_persona=payload.customPersona,
            device=payload.device,
        )
    except PersonaResolutionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        run = runs_service.create_and_start_run(
            db,
            url=str(payload.url),
            goal=payload.goal,
            persona=persona,
        )
    except RunAdmissionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return CreateRunResponse(runId=run.id, status=run.status, personaId=persona.id)


@router.get("")
def list_runs_endpoint(db: Session = Depends(get_db)) -> list[dict]:
    return [RunRead.model_validate(run).to_wire() for run in list_runs(db)]


@router.get("/{run_id}", response_model=RunDetailResponse)
def get_run_endpoint(run_id: UUID, db: Session = Depends(get_db)) -> RunDetailResponse:
    run = get_run(db, run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return RunDetailResponse(**runs_service.run_detail(db, run))


@router.post("/{run_id}/stop", response_model=StopRunResponse)
def stop_run_endpoint(run_id: UUID, db: Session = Depends(get_db)) -> StopRunResponse:
    try:
        runs_service.stop_run(db, run_id=run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail="Run not found") from e
    except RunNotRunningError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return StopRunResponse(runId=run_id)


@router.get("/{run_id}/stream")
def stream_run_endpoint(run_id: UUID, db: Session = Depends(get_db)) -> StreamingResponse:
    if not get_run(db, run_id):
        raise HTTPException(status_code=404, detail="Run not found")

    hub = get_hub()
    observer = QueueObserver()

    def event_stream():
        hub.attach(run_id, observer, lambda: runs_service.build_snapshot(run_id))
        try:
            for message in observer.messages():
                yield _sse_event(message)
        finally:
            hub.detach(run_id, observer)
            logger.debug("Stream closed run_id=%s", run_id)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
