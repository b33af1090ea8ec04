"""
Turning a topic and its subtopics into desired study events.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .availability import resolve_window_hours
from .models import DayWindow, DesiredEvent

logger = logging.getLogger(__name__)

WINDOW_LENGTH_HOURS = 4


class TimePreference(str, Enum):
    """Preferred time of day for lessons."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def start_hour(self) -> int:
        return {
            TimePreference.MORNING: 8,
            TimePreference.AFTERNOON: 12,
            TimePreference.EVENING: 17,
        }[self]

    @property
    def end_hour(self) -> int:
        return self.start_hour + WINDOW_LENGTH_HOURS


def resolve_plan_hours(
    preference: TimePreference | None,
    start_hour: Any = None,
    end_hour: Any = None,
) -> Tuple[int, int]:
    """
    Window hours of a plan.

    A time preference wins; without one the given window hours are used,
    falling back to 09:00-17:00 when they are missing or invalid.
    """
    if preference is not None:
        return preference.start_hour, preference.end_hour
    return resolve_window_hours(start_hour, end_hour)


def parse_subtopics(raw: str) -> List[str]:
    """Split generated text into one subtopic per non-blank line."""
    return [line.strip() for line in raw.splitlines() if line.strip()]


def _plan_days(now: DateTime, plan_days: int, timezone: str) -> List[DateTime]:
    """Midnight of each plan day, starting the day after ``now``."""
    today = now.in_timezone(timezone).start_of("day")
    return [today.add(days=offset + 1) for offset in range(plan_days)]


def plan_windows(
    preference: TimePreference | None,
    plan_days: int,
    now: DateTime | None = None,
    timezone: str = "UTC",
    start_hour: Any = None,
    end_hour: Any = None,
) -> List[DayWindow]:
    """
    Day windows the plan's availability is queried for.

    Returns:
        One window per plan day, bounded by the preference's hours or,
        without a preference, by ``start_hour`` and ``end_hour``
    """
    now = now or pendulum.now(timezone)
    window_start, window_end = resolve_plan_hours(preference, start_hour, end_hour)
    return [
        DayWindow.for_date(day.date(), window_start, window_end, timezone)
        for day in _plan_days(now, plan_days, timezone)
    ]


def build_desired_events(
    topic: str,
    subtopics: Sequence[str],
    plan_days: int,
    lesson_duration_minutes: int,
    preference: TimePreference | None,
    now: DateTime | None = None,
    timezone: str = "UTC",
    start_hour: Any = None,
    end_hour: Any = None,
) -> List[DesiredEvent]:
    """
    Create one lesson per plan day, anchored at the start of the plan window.

    Args:
        topic: Subject of the plan, used in every summary
        subtopics: Lesson descriptions in order; missing ones get a placeholder
        plan_days: Number of consecutive days, starting tomorrow
        lesson_duration_minutes: Length of each lesson
        preference: Time of day the lessons should start at, or None
        now: Reference time (defaults to the current time)
        timezone: IANA timezone the preferred hour is expressed in
        start_hour: Window start hour used when there is no preference
        end_hour: Window end hour used when there is no preference

    Returns:
        Desired events ordered by day
    """
    if len(subtopics) < plan_days:
        logger.warning(
            "Got %d subtopic(s) for a %d day plan, filling the rest with placeholders",
            len(subtopics),
            plan_days,
        )

    now = now or pendulum.now(timezone)
    preferred_hour, _ = resolve_plan_hours(preference, start_hour, end_hour)
    events: List[DesiredEvent] = []

    for index, day in enumerate(_plan_days(now, plan_days, timezone)):
        description = subtopics[index] if index < len(subtopics) else f"Subtopic #{index + 1}"
        events.append(
            DesiredEvent(
                summary=f"Day {index + 1} of {topic}",
                description=description,
                preferred_start=day.set(hour=preferred_hour),
                duration_minutes=lesson_duration_minutes,
            )
        )

    return events
