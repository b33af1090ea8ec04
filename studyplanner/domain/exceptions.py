"""
Domain-specific exception hierarchy for the study planner application.
"""


class StudyPlannerError(Exception):
    """Base class for all application-level errors."""


class InvalidIntervalError(StudyPlannerError, ValueError):
    """Raised when a time interval ends before it starts."""


class CalendarAPIError(StudyPlannerError):
    """Raised when calendar data cannot be fetched or parsed."""


class PublishError(StudyPlannerError):
    """Raised when placed events cannot be handed to the calendar."""
