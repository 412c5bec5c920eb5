from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from agent.errors import RunAdmissionError

if TYPE_CHECKING:
    from agent.runner import RunOrchestrator

logger = logging.getLogger(__name__)


class RunRegistry:
    """Active runs by id, with a hard cap. Over capacity is refused, never queued."""

    def __init__(self, *, max_active_runs: int = 1) -> None:
        self.max_active_runs = max_active_runs
        self._active: dict[str, RunOrchestrator | None] = {}
        self._lock = threading.Lock()

    def reserve(self, run_id: Any) -> None:
        key = str(run_id)
        with self._lock:
            if key in self._active:
                raise RunAdmissionError(f"Run {key} is already active")
            if len(self._active) >= self.max_active_runs:
                raise RunAdmissionError(
                    f"A run is already in progress ({len(self._active)}/{self.max_active_runs} active)"
                )
            self._active[key] = None

    def attach(self, run_id: Any, orchestrator: "RunOrchestrator") -> None:
        with self._lock:
            self._active[str(run_id)] = orchestrator

    def get(self, run_id: Any) -> "RunOrchestrator | None":
        with self._lock:
            return self._active.get(str(run_id))

    def release(self, run_id: Any) -> None:
        with self._lock:
            self._active.pop(str(run_id), None)
        logger.debug("Run released run_id=%s", run_id)

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)


@lru_cache
def get_registry() -> RunRegistry:
    from app.config import get_settings

    return RunRegistry(max_active_runs=get_settings().max_active_runs)
