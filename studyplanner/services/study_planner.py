"""
Application services for drafting and confirming study plans.

The service coordinates the external collaborators (calendar, subtopic
generator, event publisher) through small protocols and delegates the actual
availability and placement work to the domain layer. This keeps the CLI thin
and lets tests swap every collaborator for a stub.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, Field, field_validator

from ..domain.allocator import SlotAllocator
from ..domain.availability import AvailabilityAggregator
from ..domain.grouping import ScheduleGrouper
from ..domain.models import (
    AvailabilityMap,
    DesiredEvent,
    PlacedEvent,
    TimeInterval,
    copy_availability,
)
from ..domain.plan_builder import (
    TimePreference,
    build_desired_events,
    parse_subtopics,
    plan_windows,
)
from ..domain.regeneration import RegenerationStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Credentials handed over by the authentication collaborator."""
    access_token: str
    account: str = ""


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def get_busy_intervals(
        self,
        auth: AuthContext,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[TimeInterval]:
        """Return busy intervals overlapping the requested range."""


class SubtopicGeneratorProtocol(Protocol):
    """Protocol for the component that proposes lesson subtopics."""

    async def generate(self, auth: AuthContext, topic: str, count: int) -> str:
        """Return raw text with one subtopic per line."""


class EventPublisherProtocol(Protocol):
    """Protocol for the component that writes placed events to a calendar."""

    async def publish(self, auth: AuthContext, events: List[Dict[str, Any]]) -> int:
        """Persist event payloads and return how many were written."""


class PlanRequest(BaseModel):
    """Parameters of a study plan."""
    topic: str
    plan_days: int = Field(default=5, gt=0)
    lesson_duration_minutes: int = Field(default=30, gt=0)
    time_preference: Optional[TimePreference] = None

    @field_validator("topic")
    @classmethod
    def validate_topic(cls, value: str) -> str:
        """Ensure the topic is not blank."""
        value = value.strip()
        if not value:
            raise ValueError("topic must not be empty")
        return value


@dataclass
class StudyPlan:
    """
    A drafted plan together with the availability it was packed into.

    ``availability`` is the untouched snapshot; it is only ever read, so
    regenerations can replay it.
    """
    request: PlanRequest
    availability: AvailabilityMap
    desired: List[DesiredEvent]
    events: List[PlacedEvent] = field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        """Number of desired events that could not be placed."""
        return len(self.desired) - len(self.events)

    def payloads(self) -> List[Dict[str, Any]]:
        return [event.to_payload() for event in self.events]


class StudyPlannerService:
    """
    Orchestrates availability lookup, placement and publishing.

    Dependency inversion toward protocols makes it easy to plug in a real
    calendar provider or the mock implementations in tests.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        subtopic_generator: SubtopicGeneratorProtocol | None = None,
        event_publisher: EventPublisherProtocol | None = None,
        timezone: str = "UTC",
        window_start_hour: int | None = None,
        window_end_hour: int | None = None,
    ) -> None:
        self._calendar_client = calendar_client
        self._subtopic_generator = subtopic_generator
        self._event_publisher = event_publisher
        self.timezone = timezone
        # Used for plans without a time-of-day preference
        self.window_start_hour = window_start_hour
        self.window_end_hour = window_end_hour

        self._aggregator = AvailabilityAggregator(timezone=timezone)
        self._allocator = SlotAllocator(timezone=timezone)
        self._grouper = ScheduleGrouper(timezone=timezone)
        self._regeneration = RegenerationStrategy(self._allocator)

    async def fetch_availability(
        self,
        *,
        auth: AuthContext,
        preference: TimePreference | None,
        plan_days: int,
        now: DateTime | None = None,
    ) -> AvailabilityMap:
        """Fetch busy intervals for the plan days and turn them into free time."""
        windows = plan_windows(
            preference,
            plan_days,
            now=now,
            timezone=self.timezone,
            start_hour=self.window_start_hour,
            end_hour=self.window_end_hour,
        )
        if not windows:
            return {}

        busy = await self._calendar_client.get_busy_intervals(
            auth=auth,
            start_time=windows[0].start,
            end_time=windows[-1].end,
            timezone=self.timezone,
        )

        return self._aggregator.build_availability_map(windows, busy)

    async def generate_subtopics(
        self,
        *,
        auth: AuthContext,
        topic: str,
        count: int,
    ) -> List[str]:
        """Ask the subtopic generator for ``count`` subtopics."""
        if self._subtopic_generator is None:
            return []

        raw = await self._subtopic_generator.generate(auth, topic, count)
        return parse_subtopics(raw)

    async def draft_plan(
        self,
        *,
        auth: AuthContext,
        request: PlanRequest,
        subtopics: Sequence[str] | None = None,
        now: DateTime | None = None,
    ) -> StudyPlan:
        """
        Build and place the lessons of a plan.

        Subtopics are requested from the generator when none are given.
        """
        now = now or pendulum.now(self.timezone)

        if subtopics is None:
            subtopics = await self.generate_subtopics(
                auth=auth,
                topic=request.topic,
                count=request.plan_days,
            )

        availability = await self.fetch_availability(
            auth=auth,
            preference=request.time_preference,
            plan_days=request.plan_days,
            now=now,
        )

        desired = build_desired_events(
            topic=request.topic,
            subtopics=list(subtopics),
            plan_days=request.plan_days,
            lesson_duration_minutes=request.lesson_duration_minutes,
            preference=request.time_preference,
            now=now,
            timezone=self.timezone,
            start_hour=self.window_start_hour,
            end_hour=self.window_end_hour,
        )

        plan = StudyPlan(
            request=request,
            availability=availability,
            desired=desired,
            events=self._allocator.allocate(desired, availability),
        )
        self._log_result(plan)
        return plan

    def regenerate(self, plan: StudyPlan) -> StudyPlan:
        """
        Re-pack the plan's events in reverse order against its snapshot.

        The desired lessons are carried over unchanged, so ``dropped_count``
        keeps counting against the original lesson list.
        """
        regenerated = StudyPlan(
            request=plan.request,
            availability=plan.availability,
            desired=plan.desired,
            events=self._regeneration.regenerate(plan.availability, plan.events),
        )
        self._log_result(regenerated)
        return regenerated

    def group(self, plan: StudyPlan) -> Dict[str, List[PlacedEvent]]:
        """Placed events grouped by day for rendering."""
        return self._grouper.group(plan.events)

    def remaining_availability(self, plan: StudyPlan) -> AvailabilityMap:
        """Free time left after the plan's events are taken out."""
        working = copy_availability(plan.availability)
        self._allocator.place([event.as_desired() for event in plan.events], working)
        return working

    async def confirm(self, *, auth: AuthContext, plan: StudyPlan) -> int:
        """
        Hand the placed events to the event publisher.

        Returns:
            Number of events the publisher reported as written
        """
        if self._event_publisher is None:
            raise RuntimeError("No event publisher configured")

        if not plan.events:
            return 0

        return await self._event_publisher.publish(auth, plan.payloads())

    @staticmethod
    def _log_result(plan: StudyPlan) -> None:
        if plan.dropped_count:
            logger.info(
                "Placed %d of %d lesson(s); %d could not fit",
                len(plan.events),
                len(plan.desired),
                plan.dropped_count,
            )
        else:
            logger.info("Placed all %d lesson(s)", len(plan.events))
