"""
Subtopic generator backed by a fixed list, used instead of a language model.
"""

from typing import Sequence

from ..services.study_planner import AuthContext


class StaticSubtopicGenerator:
    """
    Returns preconfigured subtopics in the same line-based text format a
    language model would produce.
    """

    def __init__(self, subtopics: Sequence[str]):
        self.subtopics = list(subtopics)

    async def generate(self, auth: AuthContext, topic: str, count: int) -> str:
        return "\n".join(self.subtopics[:count])
