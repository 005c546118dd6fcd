"""Randomized task outcomes."""

from .resolver import (
    CraftResolution,
    GatherResolution,
    adventure_xp,
    downgrade_tier,
    eligible_materials,
    final_success_chance,
    gather_xp,
    is_downgrade_candidate,
    resolve_craft,
    resolve_gather,
)

__all__ = [
    "CraftResolution",
    "GatherResolution",
    "adventure_xp",
    "downgrade_tier",
    "eligible_materials",
    "final_success_chance",
    "gather_xp",
    "is_downgrade_candidate",
    "resolve_craft",
    "resolve_gather",
]
