"""
Availability aggregation: turning busy intervals into free time.

Pure domain logic without any external dependencies (no API calls, no I/O).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidIntervalError
from .models import AvailabilityMap, DayAvailability, DayWindow, TimeInterval

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_START_HOUR = 9
DEFAULT_WINDOW_END_HOUR = 17


def resolve_window_hours(start_hour: Any = None, end_hour: Any = None) -> Tuple[int, int]:
    """
    Return usable window hours, falling back to 09:00-17:00.

    The fallback applies when either hour is missing, is not an integer,
    lies outside 0..24 or does not open before it closes.
    """
    def _valid(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 24

    if _valid(start_hour) and _valid(end_hour) and start_hour < end_hour:
        return start_hour, end_hour

    if start_hour is not None or end_hour is not None:
        logger.warning(
            "Invalid window hours (%r, %r), using %02d:00-%02d:00",
            start_hour,
            end_hour,
            DEFAULT_WINDOW_START_HOUR,
            DEFAULT_WINDOW_END_HOUR,
        )
    return DEFAULT_WINDOW_START_HOUR, DEFAULT_WINDOW_END_HOUR


def parse_instant(value: Any, timezone: str = "UTC") -> DateTime:
    """
    Parse an ISO 8601 string or datetime into a timezone-aware pendulum DateTime.

    Naive values are interpreted in ``timezone``.

    Raises:
        ValueError: If the value cannot be interpreted as an instant
    """
    if isinstance(value, DateTime):
        return value

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return pendulum.instance(value, tz=timezone)
        return pendulum.instance(value)

    if isinstance(value, str):
        parsed = pendulum.parse(value, tz=timezone)
        if isinstance(parsed, DateTime):
            return parsed

    raise ValueError(f"Could not parse datetime: {value!r}")


class AvailabilityAggregator:
    """
    Computes the free intervals of a day from its busy intervals.

    Algorithm:
    1. Clip every busy interval to the day window (empty results are dropped)
    2. Sort busy intervals by start
    3. Sweep a frontier from the window start, emitting the gap before each
       busy interval and advancing the frontier past it
    4. Emit whatever is left between the frontier and the window end
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone

    def aggregate(
        self,
        window: DayWindow,
        busy: Iterable[TimeInterval],
    ) -> DayAvailability:
        """
        Compute the free intervals of a single day.

        Args:
            window: The day's query window
            busy: Unordered, possibly overlapping busy intervals

        Returns:
            DayAvailability with sorted, non-overlapping free intervals
        """
        clipped = [interval.clip(window) for interval in busy]
        sorted_busy = sorted(
            (interval for interval in clipped if not interval.is_empty()),
            key=lambda interval: interval.start,
        )

        free_intervals: List[TimeInterval] = []
        frontier = window.start

        for interval in sorted_busy:
            if interval.start > frontier:
                free_intervals.append(TimeInterval(start=frontier, end=interval.start))

            # Nested or overlapping busy time must never pull the frontier back
            frontier = max(frontier, interval.end)

        if frontier < window.end:
            free_intervals.append(TimeInterval(start=frontier, end=window.end))

        return DayAvailability(date=window.date, free_intervals=free_intervals)

    def aggregate_payload(
        self,
        payload: Mapping[str, Any],
        window: DayWindow | None = None,
        start_hour: Any = None,
        end_hour: Any = None,
    ) -> DayAvailability:
        """
        Compute availability from the boundary shape ``{date, busy: [{start, end}]}``.

        Args:
            payload: Mapping with a ``date`` string and a ``busy`` list
            window: Explicit window; built from the hours when omitted
            start_hour: Window start hour (defaults to 9 when missing or invalid)
            end_hour: Window end hour (defaults to 17 when missing or invalid)

        Raises:
            InvalidIntervalError: If any busy interval ends before it starts
        """
        day = payload["date"]
        if window is None:
            resolved_start, resolved_end = resolve_window_hours(start_hour, end_hour)
            window = DayWindow.for_date(day, resolved_start, resolved_end, self.timezone)

        busy: List[TimeInterval] = []
        for item in payload.get("busy", []):
            try:
                busy.append(
                    TimeInterval(
                        start=parse_instant(item["start"], self.timezone),
                        end=parse_instant(item["end"], self.timezone),
                    )
                )
            except InvalidIntervalError as exc:
                raise InvalidIntervalError(
                    f"Rejecting availability for {day}: {exc}"
                ) from exc

        return self.aggregate(window, busy)

    def build_availability_map(
        self,
        windows: Sequence[DayWindow],
        busy: Sequence[TimeInterval],
    ) -> AvailabilityMap:
        """
        Aggregate a flat busy list over several day windows.

        Busy intervals are clipped per window, so an event spanning midnight
        contributes to both days.
        """
        availability: AvailabilityMap = {}

        for window in windows:
            availability[window.date] = self.aggregate(window, busy)
            logger.debug(
                "%s: %d free interval(s), %d free minute(s)",
                window.date,
                len(availability[window.date].free_intervals),
                availability[window.date].free_minutes(),
            )

        return availability
