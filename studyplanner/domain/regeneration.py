"""
Alternate arrangement of an existing placement.
"""

from __future__ import annotations

from typing import List, Sequence

from .allocator import SlotAllocator
from .models import AvailabilityMap, PlacedEvent


class RegenerationStrategy:
    """
    Re-packs previously placed events in reverse order.

    Every call starts from the pristine availability snapshot, so repeated
    regenerations are independent of each other. This is a fixed heuristic,
    not a search for a better packing.
    """

    def __init__(self, allocator: SlotAllocator):
        self.allocator = allocator

    def regenerate(
        self,
        original: AvailabilityMap,
        placed: Sequence[PlacedEvent],
    ) -> List[PlacedEvent]:
        """
        Place the reversed events again against a copy of ``original``.

        Each event is re-anchored at the start it was previously placed at.

        Args:
            original: Availability as computed before any allocation
            placed: Events from an earlier allocation run

        Returns:
            The newly placed events
        """
        reversed_events = [event.as_desired() for event in reversed(placed)]

        # allocate() copies the map, the snapshot stays untouched
        return self.allocator.allocate(reversed_events, original)
