"""
Rank and guild-class gates.

Pure rules deciding who may attempt an adventure tier and what a guild needs
for its next class. Guild classes run from 12 (new) to 1 (top). Promoting a
guild from class `c` to `c - 1` needs every member at the rank held by class
`c - 1` and `(13 - c) * 5` completed adventures summed over the members.

    promotion   member rank   adventures
    12 -> 11    F             5
    11 -> 10    D             10
    ...
    2 -> 1      S             55
"""

from __future__ import annotations

from guildhall.database.models.enums import Tier
from guildhall.modules.shared.constants import (
    GUILD_ADVENTURES_PER_CLASS,
    GUILD_CLASS_RANKS,
    GUILD_START_CLASS,
    GUILD_TOP_CLASS,
)


def can_attempt_tier(rank_letter: str, tier: str) -> bool:
    """
    True when a player's rank letter is at or above the adventure tier.

    Example:
        >>> can_attempt_tier("C", "D")
        True
        >>> can_attempt_tier("D", "S")
        False
    """
    return Tier(rank_letter).index >= Tier(tier).index


def required_rank_for_class(guild_class: int) -> str:
    """
    Minimum rank letter every member needs for a guild to hold `guild_class`.

    Raises:
        ValueError: `guild_class` is outside 1..12
    """
    try:
        return GUILD_CLASS_RANKS[guild_class]
    except KeyError:
        raise ValueError(f"guild class out of range: {guild_class}") from None


def required_adventures_for_class(guild_class: int) -> int:
    """
    Summed completed adventures a guild at `guild_class` needs before it
    can be promoted.

    Counted from the current class, `(13 - current) * 5`: 5 for 12→11 and
    55 for 2→1. Counting from the target class instead, as the original
    game server did, would give 10 and 60.

    Example:
        >>> required_adventures_for_class(12)
        5
        >>> required_adventures_for_class(2)
        55
    """
    return (GUILD_START_CLASS + 1 - guild_class) * GUILD_ADVENTURES_PER_CLASS


def next_class(guild_class: int) -> int:
    return max(GUILD_TOP_CLASS, guild_class - 1)
