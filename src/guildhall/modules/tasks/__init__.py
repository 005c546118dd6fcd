"""Timed task lifecycle: start, claim, list."""

from .payloads import (
    ActiveTaskView,
    AdventureOutcome,
    AdventurePayload,
    CraftOutcome,
    GatherOutcome,
)
from .service import TaskService

__all__ = [
    "ActiveTaskView",
    "AdventureOutcome",
    "AdventurePayload",
    "CraftOutcome",
    "GatherOutcome",
    "TaskService",
]
