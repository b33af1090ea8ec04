"""
Event publisher that writes placed events to a JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from ..domain.exceptions import PublishError
from ..services.study_planner import AuthContext

logger = logging.getLogger(__name__)


class JsonEventPublisher:
    """
    Stores event payloads as a JSON list, in the shape a calendar insert
    would receive them.
    """

    def __init__(self, output_file: Path):
        self.output_file = output_file

    async def publish(self, auth: AuthContext, events: List[Dict[str, Any]]) -> int:
        """
        Write the payloads, replacing any previous content.

        Raises:
            PublishError: If the file cannot be written
        """
        try:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_file, "w", encoding="utf-8") as f:
                json.dump(events, f, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise PublishError(f"Could not write events to {self.output_file}: {exc}") from exc

        logger.info("Wrote %d event(s) to %s", len(events), self.output_file)
        return len(events)
