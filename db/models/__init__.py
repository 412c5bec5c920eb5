from db.models.friction_point import FrictionPoint
from db.models.run import Run, RunStatus
from db.models.run_event import RunEvent

__all__ = ["FrictionPoint", "Run", "RunEvent", "RunStatus"]
