"""
Adapters layer - Stand-ins for the external calendar and language model.
"""

from .json_event_publisher import JsonEventPublisher
from .mock_calendar_client import MockCalendarClient
from .static_subtopics import StaticSubtopicGenerator

__all__ = ["JsonEventPublisher", "MockCalendarClient", "StaticSubtopicGenerator"]
