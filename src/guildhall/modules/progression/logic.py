"""
Skill and rank progression formulas.

Purpose
-------
Pure calculation functions for the two progression curves:

- Skill tracks level on a threshold of `level * 100` xp, at most one level
  per grant. Xp beyond the threshold is carried into the next level without
  being re-checked, so a large grant can leave a track holding more xp than
  its new threshold.
- Adventure rank uses a flat 100 xp per rank level and cascades through as
  many levels as the grant pays for. Passing level 100 promotes the rank
  letter F -> D -> C -> B -> A -> S and restarts at level 1. At S the level
  clamps to 100 and the remaining xp is discarded.

Design Notes
------------
- No database or config access; callers pass the current state in and
  write the returned state back.
- Results are frozen dataclasses.

Usage
-----
    from guildhall.modules.progression.logic import apply_skill_xp

    result = apply_skill_xp(level=3, xp=250, gained=80)
    # SkillProgress(level=4, xp=30, leveled_up=True)
"""

from __future__ import annotations

from dataclasses import dataclass

from guildhall.database.models.enums import Tier
from guildhall.modules.shared.constants import (
    MAX_RANK_LEVEL,
    RANK_XP_PER_LEVEL,
    SKILL_XP_PER_LEVEL,
)


@dataclass(frozen=True)
class SkillProgress:
    level: int
    xp: int
    leveled_up: bool


@dataclass(frozen=True)
class RankProgress:
    rank_letter: str
    rank_level: int
    xp: int
    promoted: bool


def skill_xp_threshold(level: int) -> int:
    """
    Xp needed to leave `level`.

    Example:
        >>> skill_xp_threshold(4)
        400
    """
    return level * SKILL_XP_PER_LEVEL


def apply_skill_xp(level: int, xp: int, gained: int) -> SkillProgress:
    """
    Add `gained` xp to a skill track.

    Example:
        >>> apply_skill_xp(1, 90, 20)
        SkillProgress(level=2, xp=10, leveled_up=True)
        >>> apply_skill_xp(1, 0, 450)
        SkillProgress(level=2, xp=350, leveled_up=True)
    """
    new_xp = xp + gained
    threshold = skill_xp_threshold(level)
    if new_xp >= threshold:
        return SkillProgress(level=level + 1, xp=new_xp - threshold, leveled_up=True)
    return SkillProgress(level=level, xp=new_xp, leveled_up=False)


def apply_rank_xp(rank_letter: str, rank_level: int, xp: int, gained: int) -> RankProgress:
    """
    Add `gained` adventure xp and cascade rank levels and letters.

    Example:
        >>> apply_rank_xp("F", 100, 0, 120)
        RankProgress(rank_letter='D', rank_level=1, xp=20, promoted=True)
        >>> apply_rank_xp("S", 100, 50, 6000)
        RankProgress(rank_letter='S', rank_level=100, xp=0, promoted=False)
    """
    tier = Tier(rank_letter)
    level = rank_level
    new_xp = xp + gained
    promoted = False

    while new_xp >= RANK_XP_PER_LEVEL:
        new_xp -= RANK_XP_PER_LEVEL
        level += 1
        if level > MAX_RANK_LEVEL:
            next_tier = tier.next()
            if next_tier is None:
                level = MAX_RANK_LEVEL
                new_xp = 0
                break
            tier = next_tier
            level = 1
            promoted = True

    return RankProgress(
        rank_letter=tier.value, rank_level=level, xp=new_xp, promoted=promoted
    )
