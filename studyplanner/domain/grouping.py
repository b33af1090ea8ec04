"""
Grouping of placed events for presentation.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

import pendulum

from .models import PlacedEvent, date_key


class ScheduleGrouper:
    """
    Groups placed events by calendar day.

    Read-only: the input sequence and its events are never modified.
    """

    def __init__(self, timezone: str | None = None):
        self.timezone = timezone

    def group(self, events: Iterable[PlacedEvent]) -> Dict[str, List[PlacedEvent]]:
        """
        Group events by the date of their start.

        Returns:
            Mapping of YYYY-MM-DD to events sorted by start. Keys are
            inserted in ascending calendar order.
        """
        buckets: Dict[str, List[PlacedEvent]] = {}

        for event in events:
            buckets.setdefault(date_key(event.start, self.timezone), []).append(event)

        return {
            day: sorted(buckets[day], key=lambda event: event.start)
            for day in sorted(buckets)
        }

    @staticmethod
    def format_day_label(day: str) -> str:
        """Format a date key as e.g. 'Monday, 25 November 2024'."""
        return pendulum.from_format(day, "YYYY-MM-DD").format("dddd, D MMMM YYYY")
