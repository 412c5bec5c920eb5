from app.contracts.decision import ActionType, AgentAction, Decision, FrictionAssessment
from app.contracts.friction import (
    ElementReference,
    FrictionCategory,
    FrictionPattern,
    FrictionSeverity,
)
from app.contracts.page_state import PageElement, PageState
from app.contracts.recommendation import Recommendation, RecommendationEffort, RecommendationType
from app.contracts.run_summary import RunSummary
from app.contracts.runs import EventType, FrictionPointRead, RunEventRead, RunRead

__all__ = [
    "ActionType",
    "AgentAction",
    "Decision",
    "FrictionAssessment",
    "ElementReference",
    "FrictionCategory",
    "FrictionPattern",
    "FrictionSeverity",
    "PageElement",
    "PageState",
    "Recommendation",
    "RecommendationEffort",
    "RecommendationType",
    "RunSummary",
    "EventType",
    "FrictionPointRead",
    "RunEventRead",
    "RunRead",
]
