"""
Task payloads and claim outcomes.

Only adventures carry a payload; crafting and gathering tasks are fully
described by `target_id` / `category`. The payload is stored in the task's
JSON column and rebuilt with `AdventurePayload.from_dict`.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from guildhall.database.models.enums import CraftStatus, TaskType


@dataclass(frozen=True)
class AdventurePayload:
    tier: str
    monster_name: str
    template_name: str
    template_type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdventurePayload":
        return cls(
            tier=str(data["tier"]),
            monster_name=str(data["monster_name"]),
            template_name=str(data["template_name"]),
            template_type=str(data["template_type"]),
        )


@dataclass(frozen=True)
class CraftOutcome:
    status: CraftStatus
    reward_item_name: Optional[str]
    xp_gained: int

    @property
    def success(self) -> bool:
        return self.status is CraftStatus.SUCCESS


@dataclass(frozen=True)
class GatherOutcome:
    reward_item: str
    quantity: int
    xp_gained: int


@dataclass(frozen=True)
class AdventureOutcome:
    xp_gained: int
    new_rank_letter: str
    new_rank_level: int


def remaining_seconds(end_time: int, now_ms: int) -> int:
    """Whole seconds until `end_time`, rounded up, never negative."""
    return max(0, math.ceil((end_time - now_ms) / 1000))


@dataclass(frozen=True)
class ActiveTaskView:
    """
    Read-only projection of an active task.

    Claimability is derived from the clock and never stored.
    """

    id: int
    task_type: TaskType
    target_id: Optional[int]
    category: Optional[str]
    payload: Optional[AdventurePayload]
    start_time: int
    end_time: int

    def is_claimable(self, now_ms: int) -> bool:
        return now_ms >= self.end_time

    def remaining_seconds(self, now_ms: int) -> int:
        return remaining_seconds(self.end_time, now_ms)
