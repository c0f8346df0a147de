"""Timeline Pydantic models."""
from typing import List

from api.schemas.events import Event


class TimelineNode(Event):
    """An event with its children nested beneath it."""

    children: List["TimelineNode"] = []


TimelineNode.model_rebuild()
