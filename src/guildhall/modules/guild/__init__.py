"""Guilds: rank gates, creation, promotion."""

from .rank_gate import (
    can_attempt_tier,
    next_class,
    required_adventures_for_class,
    required_rank_for_class,
)
from .service import GuildService

__all__ = [
    "GuildService",
    "can_attempt_tier",
    "next_class",
    "required_adventures_for_class",
    "required_rank_for_class",
]
