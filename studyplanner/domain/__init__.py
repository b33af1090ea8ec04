"""
Domain layer - Pure business logic without external dependencies.
"""

from .allocator import SlotAllocator
from .availability import AvailabilityAggregator, resolve_window_hours
from .exceptions import InvalidIntervalError, StudyPlannerError
from .grouping import ScheduleGrouper
from .models import (
    AvailabilityMap,
    DayAvailability,
    DayWindow,
    DesiredEvent,
    PlacedEvent,
    TimeInterval,
    copy_availability,
)
from .plan_builder import (
    TimePreference,
    build_desired_events,
    parse_subtopics,
    plan_windows,
    resolve_plan_hours,
)
from .regeneration import RegenerationStrategy

__all__ = [
    "AvailabilityAggregator",
    "AvailabilityMap",
    "DayAvailability",
    "DayWindow",
    "DesiredEvent",
    "InvalidIntervalError",
    "PlacedEvent",
    "RegenerationStrategy",
    "ScheduleGrouper",
    "SlotAllocator",
    "StudyPlannerError",
    "TimeInterval",
    "TimePreference",
    "build_desired_events",
    "copy_availability",
    "parse_subtopics",
    "plan_windows",
    "resolve_plan_hours",
    "resolve_window_hours",
]
