from __future__ import annotations


class AgentError(RuntimeError):
    pass


class AgentAlreadyRunningError(AgentError):
    """An orchestrator was asked to start while it already drives a run."""


class RunAdmissionError(AgentError):
    """The process is at its active-run capacity."""


class BrowserLaunchError(AgentError):
    pass


class ActionExecutionError(AgentError):
    def __init__(self, message: str, *, action: str | None = None, target: str | None = None) -> None:
        super().__init__(message)
        self.action = action
        self.target = target
