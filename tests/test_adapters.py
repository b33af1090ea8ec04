"""
Tests for the mock calendar client and the file-based collaborators.
"""

import asyncio
import json
from pathlib import Path

import pendulum
import pytest

from studyplanner.adapters.json_event_publisher import JsonEventPublisher
from studyplanner.adapters.mock_calendar_client import MockCalendarClient
from studyplanner.adapters.static_subtopics import StaticSubtopicGenerator
from studyplanner.domain.exceptions import CalendarAPIError
from studyplanner.services.study_planner import AuthContext

TZ = "Europe/Berlin"
AUTH = AuthContext(access_token="mock_token")


def _at(value: str):
    return pendulum.parse(value, tz=TZ)


def _write(path: Path, entries) -> Path:
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


class TestMockCalendarClient:
    """Tests for MockCalendarClient."""

    def test_one_off_entries_are_filtered_by_range(self, tmp_path: Path):
        data = _write(
            tmp_path / "busy.json",
            [
                {"summary": "Dentist", "start": "2024-11-25T10:00:00+01:00", "end": "2024-11-25T11:00:00+01:00"},
                {"summary": "Past", "start": "2024-11-20T10:00:00+01:00", "end": "2024-11-20T11:00:00+01:00"},
            ],
        )
        client = MockCalendarClient(data)

        busy = asyncio.run(
            client.get_busy_intervals(AUTH, _at("2024-11-25 00:00"), _at("2024-11-26 00:00"), TZ)
        )

        assert len(busy) == 1
        assert busy[0].start == _at("2024-11-25 10:00")
        assert busy[0].end == _at("2024-11-25 11:00")

    def test_daily_entries_repeat_every_day(self, tmp_path: Path):
        data = _write(
            tmp_path / "busy.json",
            [{"summary": "Lunch", "daily": True, "start": "12:00", "end": "13:00"}],
        )
        client = MockCalendarClient(data)

        busy = asyncio.run(
            client.get_busy_intervals(AUTH, _at("2024-11-25 08:00"), _at("2024-11-27 12:00"), TZ)
        )

        # The lunch on the 27th starts exactly when the range ends
        assert [str(interval) for interval in busy] == [
            "2024-11-25 12:00 - 13:00",
            "2024-11-26 12:00 - 13:00",
        ]

    def test_malformed_entry_raises(self, tmp_path: Path):
        data = _write(
            tmp_path / "busy.json",
            [{"start": "2024-11-25T11:00:00+01:00", "end": "2024-11-25T10:00:00+01:00"}],
        )
        client = MockCalendarClient(data)

        with pytest.raises(CalendarAPIError, match="Malformed busy entry"):
            asyncio.run(
                client.get_busy_intervals(AUTH, _at("2024-11-25 00:00"), _at("2024-11-26 00:00"), TZ)
            )

    def test_unparseable_entry_raises(self, tmp_path: Path):
        data = _write(tmp_path / "busy.json", [{"start": "tomorrow-ish"}])
        client = MockCalendarClient(data)

        with pytest.raises(CalendarAPIError, match="Could not parse busy entry"):
            asyncio.run(
                client.get_busy_intervals(AUTH, _at("2024-11-25 00:00"), _at("2024-11-26 00:00"), TZ)
            )

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(CalendarAPIError, match="not found"):
            MockCalendarClient(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path: Path):
        data = tmp_path / "busy.json"
        data.write_text("{not json", encoding="utf-8")

        with pytest.raises(CalendarAPIError, match="Could not read mock calendar data"):
            MockCalendarClient(data)

    def test_non_list_raises(self, tmp_path: Path):
        data = _write(tmp_path / "busy.json", {"start": "2024-11-25T10:00:00Z"})

        with pytest.raises(CalendarAPIError, match="JSON list"):
            MockCalendarClient(data)

    def test_bundled_sample_data_loads(self):
        client = MockCalendarClient()

        busy = asyncio.run(
            client.get_busy_intervals(AUTH, _at("2024-11-25 00:00"), _at("2024-11-26 00:00"), TZ)
        )

        assert busy
        assert client.data_file.name == "mock_calendar_data.json"


def test_static_subtopic_generator_returns_lines():
    generator = StaticSubtopicGenerator(["Vectors", "Matrices", "Determinants"])

    raw = asyncio.run(generator.generate(AUTH, "Linear Algebra", 2))

    assert raw == "Vectors\nMatrices"


def test_json_event_publisher_writes_payloads(tmp_path: Path):
    output = tmp_path / "out" / "plan.json"
    publisher = JsonEventPublisher(output)
    payloads = [
        {
            "summary": "Day 1 of Rust",
            "description": "Ownership",
            "start": {"dateTime": "2024-11-25T08:00:00Z"},
            "end": {"dateTime": "2024-11-25T08:30:00Z"},
        }
    ]

    written = asyncio.run(publisher.publish(AUTH, payloads))

    assert written == 1
    assert json.loads(output.read_text(encoding="utf-8")) == payloads
