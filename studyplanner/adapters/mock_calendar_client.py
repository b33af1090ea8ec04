"""
Mock calendar client that reads busy intervals from a JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.availability import parse_instant
from ..domain.exceptions import CalendarAPIError, InvalidIntervalError
from ..domain.models import TimeInterval
from ..services.study_planner import AuthContext

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Simulates a calendar provider's free/busy lookup.

    The data file holds a JSON list of entries. Two shapes are understood:

    - ``{"summary": ..., "start": "<ISO 8601>", "end": "<ISO 8601>"}`` for a
      one-off busy interval
    - ``{"summary": ..., "daily": true, "start": "HH:mm", "end": "HH:mm"}``
      for a block that repeats on every day of the requested range
    """

    def __init__(self, data_file: Path | None = None):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file with busy entries (defaults to the bundled sample)
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.entries = self._load_entries()

    def _load_entries(self) -> List[Dict[str, Any]]:
        """Load mock calendar entries from the JSON file."""
        if not self.data_file.exists():
            raise CalendarAPIError(f"Mock calendar file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CalendarAPIError(f"Could not read mock calendar data {self.data_file}: {exc}") from exc

        if not isinstance(entries, list):
            raise CalendarAPIError("Mock calendar data must be a JSON list of entries.")

        return entries

    async def get_busy_intervals(
        self,
        auth: AuthContext,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str = "UTC",
    ) -> List[TimeInterval]:
        """
        Return busy intervals overlapping ``[start_time, end_time)``.

        Args:
            auth: Ignored, kept for interface compatibility
            start_time: Start of the time range
            end_time: End of the time range
            timezone: IANA timezone for naive and daily entries

        Raises:
            CalendarAPIError: If an entry cannot be parsed or is malformed
        """
        requested = TimeInterval(start=start_time, end=end_time)
        busy: List[TimeInterval] = []

        for entry in self.entries:
            try:
                if entry.get("daily"):
                    candidates = self._expand_daily(entry, start_time, end_time, timezone)
                else:
                    candidates = [
                        TimeInterval(
                            start=parse_instant(entry["start"], timezone),
                            end=parse_instant(entry["end"], timezone),
                        )
                    ]
            except InvalidIntervalError as exc:
                raise CalendarAPIError(f"Malformed busy entry {entry!r}: {exc}") from exc
            except (KeyError, TypeError, ValueError) as exc:
                raise CalendarAPIError(f"Could not parse busy entry {entry!r}: {exc}") from exc

            busy.extend(interval for interval in candidates if interval.overlaps(requested))

        logger.debug("Mock calendar returned %d busy interval(s)", len(busy))
        return busy

    def _expand_daily(
        self,
        entry: Dict[str, Any],
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[TimeInterval]:
        """Materialise a daily entry on every day of the range."""
        start_clock = pendulum.parse(entry["start"], exact=True)
        end_clock = pendulum.parse(entry["end"], exact=True)

        intervals: List[TimeInterval] = []
        current = start_time.in_timezone(timezone).start_of("day")

        while current < end_time:
            intervals.append(
                TimeInterval(
                    start=current.set(hour=start_clock.hour, minute=start_clock.minute),
                    end=current.set(hour=end_clock.hour, minute=end_clock.minute),
                )
            )
            current = current.add(days=1)

        return intervals
