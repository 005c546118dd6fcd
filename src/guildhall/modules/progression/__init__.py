"""Skill and rank progression."""

from .logic import (
    RankProgress,
    SkillProgress,
    apply_rank_xp,
    apply_skill_xp,
    skill_xp_threshold,
)

__all__ = [
    "RankProgress",
    "SkillProgress",
    "apply_rank_xp",
    "apply_skill_xp",
    "skill_xp_threshold",
]
