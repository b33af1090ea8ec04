"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .study_planner import (
    AuthContext,
    CalendarClientProtocol,
    EventPublisherProtocol,
    PlanRequest,
    StudyPlan,
    StudyPlannerService,
    SubtopicGeneratorProtocol,
)

__all__ = [
    "AuthContext",
    "CalendarClientProtocol",
    "EventPublisherProtocol",
    "PlanRequest",
    "StudyPlan",
    "StudyPlannerService",
    "SubtopicGeneratorProtocol",
]
