"""
Tests for the availability aggregator.
"""

import logging
from typing import List

import pendulum
import pytest

from studyplanner.domain.availability import (
    AvailabilityAggregator,
    parse_instant,
    resolve_window_hours,
)
from studyplanner.domain.exceptions import InvalidIntervalError
from studyplanner.domain.models import DayWindow, TimeInterval

TZ = "Europe/Berlin"


def _at(value: str):
    return pendulum.parse(value, tz=TZ)


def _busy(start: str, end: str) -> TimeInterval:
    return TimeInterval(start=_at(f"2024-11-25 {start}"), end=_at(f"2024-11-25 {end}"))


def _merged_busy_minutes(window: DayWindow, busy: List[TimeInterval]) -> int:
    """Minutes covered by the union of the clipped busy intervals."""
    clipped = sorted(
        (interval.clip(window) for interval in busy),
        key=lambda interval: interval.start,
    )
    total = 0
    current = None
    for interval in clipped:
        if interval.is_empty():
            continue
        if current is None or interval.start > current.end:
            if current is not None:
                total += current.duration_minutes()
            current = interval
        elif interval.end > current.end:
            current = TimeInterval(start=current.start, end=interval.end)
    if current is not None:
        total += current.duration_minutes()
    return total


class TestAvailabilityAggregator:
    """Tests for AvailabilityAggregator."""

    def setup_method(self):
        self.aggregator = AvailabilityAggregator(timezone=TZ)
        self.window = DayWindow.for_date("2024-11-25", 9, 17, TZ)

    def test_no_busy_times(self):
        """Test that an empty day is one free interval spanning the window."""
        day = self.aggregator.aggregate(self.window, [])

        assert day.date == "2024-11-25"
        assert len(day.free_intervals) == 1
        assert day.free_intervals[0].start == _at("2024-11-25 09:00")
        assert day.free_intervals[0].end == _at("2024-11-25 17:00")

    def test_single_busy_interval(self):
        """Busy 10:00-11:00 leaves 09:00-10:00 and 11:00-17:00."""
        day = self.aggregator.aggregate(self.window, [_busy("10:00", "11:00")])

        assert [(i.start, i.end) for i in day.free_intervals] == [
            (_at("2024-11-25 09:00"), _at("2024-11-25 10:00")),
            (_at("2024-11-25 11:00"), _at("2024-11-25 17:00")),
        ]

    def test_unsorted_overlapping_and_nested_busy_times(self):
        """Overlaps and nesting never produce negative gaps."""
        busy = [
            _busy("14:00", "15:00"),
            _busy("10:00", "12:00"),
            _busy("10:30", "11:00"),  # nested
            _busy("11:30", "12:30"),  # overlapping
        ]

        day = self.aggregator.aggregate(self.window, busy)

        assert [str(i) for i in day.free_intervals] == [
            "2024-11-25 09:00 - 10:00",
            "2024-11-25 12:30 - 14:00",
            "2024-11-25 15:00 - 17:00",
        ]

    def test_adjacent_busy_times_leave_no_gap(self):
        day = self.aggregator.aggregate(
            self.window, [_busy("09:00", "10:00"), _busy("10:00", "11:00")]
        )

        assert [str(i) for i in day.free_intervals] == ["2024-11-25 11:00 - 17:00"]

    def test_busy_times_are_clipped_to_window(self):
        """Busy time reaching outside the window only counts inside it."""
        busy = [_busy("07:00", "09:30"), _busy("16:30", "19:00")]

        day = self.aggregator.aggregate(self.window, busy)

        assert [str(i) for i in day.free_intervals] == ["2024-11-25 09:30 - 16:30"]

    def test_busy_times_outside_window_are_ignored(self):
        busy = [_busy("06:00", "07:00"), _busy("18:00", "19:00")]

        day = self.aggregator.aggregate(self.window, busy)

        assert [str(i) for i in day.free_intervals] == ["2024-11-25 09:00 - 17:00"]

    def test_zero_length_busy_interval_contributes_nothing(self):
        day = self.aggregator.aggregate(
            self.window, [_busy("11:00", "11:00"), _busy("10:00", "12:00")]
        )

        assert [str(i) for i in day.free_intervals] == [
            "2024-11-25 09:00 - 10:00",
            "2024-11-25 12:00 - 17:00",
        ]

    def test_fully_busy_day_has_no_free_time(self):
        day = self.aggregator.aggregate(self.window, [_busy("08:00", "18:00")])

        assert day.free_intervals == []

    def test_free_intervals_are_sorted_disjoint_and_inside_window(self):
        busy = [
            _busy("16:00", "16:45"),
            _busy("09:15", "09:45"),
            _busy("13:00", "14:30"),
            _busy("13:30", "14:00"),
            _busy("08:00", "09:05"),
        ]

        free = self.aggregator.aggregate(self.window, busy).free_intervals

        for interval in free:
            assert self.window.as_interval().contains(interval)
            assert not interval.is_empty()
        for earlier, later in zip(free, free[1:]):
            assert earlier.end < later.start

    def test_free_and_busy_minutes_cover_window(self):
        """Free minutes plus merged busy minutes equal the window length."""
        busy = [
            _busy("08:00", "09:30"),
            _busy("10:00", "11:00"),
            _busy("10:30", "12:15"),
            _busy("11:00", "11:30"),
            _busy("15:45", "18:00"),
        ]

        day = self.aggregator.aggregate(self.window, busy)

        assert day.free_minutes() + _merged_busy_minutes(self.window, busy) == 480

    def test_aggregate_payload(self):
        """The boundary shape with ISO strings is accepted."""
        payload = {
            "date": "2024-11-25",
            "busy": [
                {"start": "2024-11-25T10:00:00+01:00", "end": "2024-11-25T11:00:00+01:00"},
            ],
        }

        day = self.aggregator.aggregate_payload(payload)

        assert [str(i) for i in day.free_intervals] == [
            "2024-11-25 09:00 - 10:00",
            "2024-11-25 11:00 - 17:00",
        ]

    def test_aggregate_payload_uses_given_hours(self):
        payload = {"date": "2024-11-25", "busy": []}

        day = self.aggregator.aggregate_payload(payload, start_hour=12, end_hour=16)

        assert [str(i) for i in day.free_intervals] == ["2024-11-25 12:00 - 16:00"]

    def test_malformed_busy_interval_rejects_day(self):
        """An interval ending before it starts rejects the whole day."""
        payload = {
            "date": "2024-11-25",
            "busy": [
                {"start": "2024-11-25T10:00:00+01:00", "end": "2024-11-25T11:00:00+01:00"},
                {"start": "2024-11-25T14:00:00+01:00", "end": "2024-11-25T13:00:00+01:00"},
            ],
        }

        with pytest.raises(InvalidIntervalError, match="Rejecting availability for 2024-11-25"):
            self.aggregator.aggregate_payload(payload)

    def test_build_availability_map(self):
        """A flat busy list is split across the day windows."""
        windows = [
            DayWindow.for_date("2024-11-25", 9, 17, TZ),
            DayWindow.for_date("2024-11-26", 9, 17, TZ),
        ]
        busy = [
            _busy("10:00", "11:00"),
            TimeInterval(start=_at("2024-11-26 16:00"), end=_at("2024-11-26 18:00")),
        ]

        availability = self.aggregator.build_availability_map(windows, busy)

        assert list(availability) == ["2024-11-25", "2024-11-26"]
        assert len(availability["2024-11-25"].free_intervals) == 2
        assert [str(i) for i in availability["2024-11-26"].free_intervals] == [
            "2024-11-26 09:00 - 16:00"
        ]


class TestWindowHours:
    """Tests for window hour resolution."""

    def test_valid_hours_are_kept(self):
        assert resolve_window_hours(8, 12) == (8, 12)
        assert resolve_window_hours(20, 24) == (20, 24)

    def test_missing_hours_default(self):
        assert resolve_window_hours() == (9, 17)
        assert resolve_window_hours(10, None) == (9, 17)

    @pytest.mark.parametrize(
        "start_hour,end_hour",
        [(-1, 17), (9, 25), (17, 9), (12, 12), ("9", 17), (9.5, 17), (True, 17)],
    )
    def test_invalid_hours_default(self, start_hour, end_hour):
        assert resolve_window_hours(start_hour, end_hour) == (9, 17)

    def test_invalid_hours_log_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            resolve_window_hours(18, 9)

        assert "Invalid window hours" in caplog.text


class TestParseInstant:
    """Tests for instant parsing at the boundary."""

    def test_parse_with_offset(self):
        parsed = parse_instant("2024-11-25T10:00:00Z", TZ)

        assert parsed == pendulum.datetime(2024, 11, 25, 10, tz="UTC")

    def test_naive_string_uses_timezone(self):
        parsed = parse_instant("2024-11-25 10:00", TZ)

        assert parsed == _at("2024-11-25 10:00")

    def test_invalid_value(self):
        with pytest.raises(ValueError):
            parse_instant(12345, TZ)
