"""
First-fit placement of desired study events into free time.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from pendulum import DateTime

from .models import (
    AvailabilityMap,
    DesiredEvent,
    PlacedEvent,
    TimeInterval,
    copy_availability,
    date_key,
)

logger = logging.getLogger(__name__)


class SlotAllocator:
    """
    Places desired events into per-day free intervals.

    Algorithm (per event, in input order):
    1. Resolve the day of the event's preferred start
    2. Walk that day's free intervals with a cursor starting at the
       preferred start, moving it forward to each interval's start
    3. Take the first interval where cursor + duration still fits
    4. Replace the consumed interval by its leading and trailing remainders

    The result depends on event order. There is no backtracking: an event
    that does not fit is dropped even if another ordering would place it.
    """

    def __init__(self, timezone: str | None = None):
        self.timezone = timezone

    def allocate(
        self,
        events: Sequence[DesiredEvent],
        availability: AvailabilityMap,
    ) -> List[PlacedEvent]:
        """
        Place events against a private copy of the availability map.

        Args:
            events: Desired events in processing order
            availability: Free intervals per date key (left untouched)

        Returns:
            The events that could be placed, in processing order
        """
        working = copy_availability(availability)
        return self.place(events, working)

    def place(
        self,
        events: Sequence[DesiredEvent],
        working: AvailabilityMap,
    ) -> List[PlacedEvent]:
        """
        Place events, consuming capacity from ``working`` in place.

        Callers that need the availability afterwards must pass a copy.
        """
        placed: List[PlacedEvent] = []

        for event in events:
            key = date_key(event.preferred_start, self.timezone)
            day = working.get(key)

            if day is None:
                logger.debug("No availability for %s, skipping '%s'", key, event.summary)
                continue

            slot = self._find_slot(day.free_intervals, event.preferred_start, event.duration_minutes)

            if slot is None:
                logger.debug(
                    "No %d minute slot on %s for '%s'",
                    event.duration_minutes,
                    key,
                    event.summary,
                )
                continue

            index, used = slot
            day.free_intervals[index:index + 1] = self._split_interval(
                day.free_intervals[index], used
            )

            placed.append(
                PlacedEvent(
                    summary=event.summary,
                    description=event.description,
                    preferred_start=event.preferred_start,
                    duration_minutes=event.duration_minutes,
                    start=used.start,
                    end=used.end,
                )
            )

        return placed

    def _find_slot(
        self,
        free_intervals: Sequence[TimeInterval],
        preferred_start: DateTime,
        duration_minutes: int,
    ) -> Tuple[int, TimeInterval] | None:
        """
        Find the first free interval that can hold the event.

        Returns:
            (index of the interval, interval the event occupies) or None
        """
        cursor = preferred_start

        for index, interval in enumerate(free_intervals):
            # An event can never start before its free interval opens
            if cursor < interval.start:
                cursor = interval.start

            end = cursor.add(minutes=duration_minutes)
            if end <= interval.end:
                return index, TimeInterval(start=cursor, end=end)

        return None

    def _split_interval(
        self,
        interval: TimeInterval,
        used: TimeInterval,
    ) -> List[TimeInterval]:
        """
        Return what remains of ``interval`` once ``used`` is taken out of it.

        Example:
        Free: 09:00 - 12:00
        Used: 10:00 - 11:00
        Result: [09:00-10:00, 11:00-12:00]
        """
        remainders: List[TimeInterval] = []

        if interval.start < used.start:
            remainders.append(TimeInterval(start=interval.start, end=used.start))

        if used.end < interval.end:
            remainders.append(TimeInterval(start=used.end, end=interval.end))

        return remainders
