"""
Domain models for availability and study event placement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from .exceptions import InvalidIntervalError


def date_key(instant: DateTime, timezone: str | None = None) -> str:
    """
    Resolve the calendar date key (YYYY-MM-DD) of an instant.

    When a timezone is given the instant is converted first, otherwise the
    instant's own offset decides which day it belongs to.
    """
    if timezone:
        instant = pendulum.instance(instant).in_timezone(timezone)
    return instant.date().isoformat()


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable time interval with start and end datetime.

    Invariant: start must not be after end. Zero-length intervals are allowed
    so that clipping can express "nothing left inside the window".
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidIntervalError(
                f"Interval end {self.end} is before its start {self.start}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def is_empty(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def clip(self, bounds: "TimeInterval | DayWindow") -> "TimeInterval":
        """
        Truncate the interval to the given bounds.

        An interval lying completely outside the bounds collapses to a
        zero-length interval on the nearest bound.
        """
        start = min(max(self.start, bounds.start), bounds.end)
        end = max(min(self.end, bounds.end), start)
        return TimeInterval(start=start, end=end)

    def to_payload(self) -> Dict[str, str]:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
        }

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class DayWindow:
    """
    The bounded part of a single day in which free time is searched.
    """
    date: str
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidIntervalError(
                f"Window end {self.end} is before its start {self.start}"
            )

    @classmethod
    def for_date(
        cls,
        day: date_type | str,
        start_hour: int,
        end_hour: int,
        timezone: str = "UTC",
    ) -> "DayWindow":
        """
        Build the window ``[start_hour, end_hour)`` for a calendar day.

        Args:
            day: Date object or YYYY-MM-DD string
            start_hour: Hour the window opens (0-23)
            end_hour: Hour the window closes (1-24)
            timezone: IANA timezone the hours are expressed in
        """
        if isinstance(day, str):
            day = pendulum.from_format(day, "YYYY-MM-DD").date()

        day_start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
        start = day_start.set(hour=start_hour)
        if end_hour >= 24:
            end = day_start.add(days=1)
        else:
            end = day_start.set(hour=end_hour)

        return cls(date=day.isoformat(), start=start, end=end)

    def as_interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    def duration_minutes(self) -> int:
        return self.as_interval().duration_minutes()


@dataclass
class DayAvailability:
    """
    Free intervals of one day, sorted ascending and pairwise non-overlapping.

    Instances are mutated by the slot allocator, so callers that need to keep
    a snapshot must work on ``copy()``.
    """
    date: str
    free_intervals: List[TimeInterval] = field(default_factory=list)

    def copy(self) -> "DayAvailability":
        """Return an independent value copy."""
        # TimeInterval is frozen, a fresh list is enough to break aliasing
        return DayAvailability(date=self.date, free_intervals=list(self.free_intervals))

    def free_minutes(self) -> int:
        return sum(interval.duration_minutes() for interval in self.free_intervals)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "free": [interval.to_payload() for interval in self.free_intervals],
        }


AvailabilityMap = Dict[str, DayAvailability]


def copy_availability(availability: AvailabilityMap) -> AvailabilityMap:
    """Deep-copy an availability map so the original survives allocation."""
    return {key: day.copy() for key, day in availability.items()}


@dataclass(frozen=True)
class DesiredEvent:
    """
    An event that has not been bound to real time yet.

    ``preferred_start`` anchors both the day and the earliest acceptable start.
    """
    summary: str
    description: str
    preferred_start: DateTime
    duration_minutes: int

    def __post_init__(self):
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise ValueError(
                f"duration_minutes must be an integer, got {self.duration_minutes!r}"
            )
        if self.duration_minutes <= 0:
            raise ValueError(
                f"duration_minutes must be greater than zero, got {self.duration_minutes}"
            )


@dataclass(frozen=True)
class PlacedEvent(DesiredEvent):
    """
    A desired event with concrete start and end assigned by the allocator.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        super().__post_init__()
        if (self.end - self.start).total_seconds() != self.duration_minutes * 60:
            raise ValueError(
                f"Placed event '{self.summary}' spans {self.start} - {self.end}, "
                f"expected {self.duration_minutes} minutes"
            )

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    def as_desired(self) -> DesiredEvent:
        """Turn the event back into a request anchored at its placed start."""
        return DesiredEvent(
            summary=self.summary,
            description=self.description,
            preferred_start=self.start,
            duration_minutes=self.duration_minutes,
        )

    def to_payload(self) -> Dict[str, Any]:
        """
        Shape handed to the persistence and rendering collaborators.
        """
        return {
            "summary": self.summary,
            "description": self.description,
            "start": {"dateTime": self.start.to_iso8601_string()},
            "end": {"dateTime": self.end.to_iso8601_string()},
            "durationMinutes": self.duration_minutes,
        }

    def format_display(self) -> str:
        """
        Format the event for display.
        Format: Weekday, YYYY-MM-DD | HH:mm – HH:mm (N min) Summary
        """
        weekday = self.start.format("dddd")
        date_str = self.start.format("YYYY-MM-DD")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')}"

        return f"{weekday}, {date_str} | {time_str} ({self.duration_minutes} min) {self.summary}"
