"""
Reward resolution for claimed tasks.

Purpose
-------
Turn a finished task into its randomized outcome. Every function here is
pure: catalog rows and player levels are passed in, randomness comes from
the injected `RandomSource`, and nothing is written. `TaskService` applies
the result.

Crafting
--------
    skill_bonus  = max(0, skill_level - recipe.min_skill_level)
    final_chance = min(100, recipe.success_rate + skill_bonus)
    roll         = uniform draw in [0, 100)

`roll <= final_chance` succeeds with one unit of the recipe's item. Otherwise
a second draw below the downgrade chance (50) yields one random product of
the same category one tier lower; anything else, including a downgrade with
no lower tier or no candidate item, fails. Non-success outcomes award
`floor(xp_reward * fail_xp_ratio)`.

Gathering
---------
Materials of the category are filtered through the unlock table; items the
table does not name are never eligible. One item is chosen uniformly, the
quantity is uniform in [1, 3] and xp is `10 + 2 * skill_level`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from guildhall.core.random_source import RandomSource
from guildhall.database.models.catalog import Item, Recipe
from guildhall.database.models.enums import CraftStatus, ItemKind, Tier
from guildhall.modules.shared.constants import (
    CRAFT_DOWNGRADE_CHANCE,
    CRAFT_FAIL_XP_RATIO,
    GATHER_BASE_XP,
    GATHER_MAX_QUANTITY,
    GATHER_MIN_QUANTITY,
    GATHER_XP_PER_LEVEL,
    MAX_SUCCESS_CHANCE,
)


@dataclass(frozen=True)
class CraftResolution:
    status: CraftStatus
    item: Optional[Item]
    xp_gained: int
    roll: float
    final_chance: int


@dataclass(frozen=True)
class GatherResolution:
    item: Item
    quantity: int
    xp_gained: int


# ============================================================================
# CRAFTING
# ============================================================================


def final_success_chance(success_rate: int, skill_level: int, min_skill_level: int) -> int:
    """
    Success chance in percent after the skill bonus, capped at 100.

    Example:
        >>> final_success_chance(90, 15, 10)
        95
        >>> final_success_chance(50, 200, 95)
        100
    """
    skill_bonus = max(0, skill_level - min_skill_level)
    return max(0, min(MAX_SUCCESS_CHANCE, success_rate + skill_bonus))


def downgrade_tier(tier: str) -> Optional[Tier]:
    """The tier a failed craft of `tier` falls back to, or None at F."""
    return Tier(tier).previous()


def is_downgrade_candidate(item: Item, output: Item) -> bool:
    lower = downgrade_tier(output.tier)
    return (
        lower is not None
        and item.kind == ItemKind.PRODUCT.value
        and item.category == output.category
        and item.tier == lower.value
    )


def resolve_craft(
    recipe: Recipe,
    skill_level: int,
    downgrade_candidates: Sequence[Item],
    rng: RandomSource,
    fail_xp_ratio: float = CRAFT_FAIL_XP_RATIO,
    downgrade_chance: float = CRAFT_DOWNGRADE_CHANCE,
) -> CraftResolution:
    """
    Roll a crafting outcome.

    Args:
        recipe: Recipe being claimed, with its output `item` loaded
        skill_level: Current level of the recipe's skill track
        downgrade_candidates: Products eligible as a downgrade; filtered
            again here so callers may pass a superset
        rng: Randomness source
        fail_xp_ratio: Share of `xp_reward` kept on downgrade or failure
        downgrade_chance: Second-roll threshold below which a failure
            downgrades instead

    Returns:
        CraftResolution with the status, rewarded item (None on failure)
        and xp gained
    """
    final_chance = final_success_chance(
        recipe.success_rate, skill_level, recipe.min_skill_level
    )
    roll = rng.random() * 100

    if roll <= final_chance:
        return CraftResolution(
            status=CraftStatus.SUCCESS,
            item=recipe.item,
            xp_gained=recipe.xp_reward,
            roll=roll,
            final_chance=final_chance,
        )

    failed_xp = math.floor(recipe.xp_reward * fail_xp_ratio)
    status = CraftStatus.FAIL
    reward: Optional[Item] = None

    if rng.random() * 100 < downgrade_chance:
        candidates = [
            item for item in downgrade_candidates if is_downgrade_candidate(item, recipe.item)
        ]
        if candidates:
            status = CraftStatus.DOWNGRADE
            reward = rng.choice(candidates)

    return CraftResolution(
        status=status,
        item=reward,
        xp_gained=failed_xp,
        roll=roll,
        final_chance=final_chance,
    )


# ============================================================================
# GATHERING
# ============================================================================


def eligible_materials(
    materials: Sequence[Item],
    unlocks: Mapping[str, int],
    skill_level: int,
) -> list[Item]:
    """
    Materials whose unlock level is at or below `skill_level`.

    Example:
        With wood unlocks {Common Wood: 1, Stick: 1, Oak Wood: 5,
        Rosewood: 15}, level 4 yields Common Wood and Stick, level 5 adds
        Oak Wood and level 15 adds Rosewood.
    """
    eligible = []
    for item in materials:
        required = unlocks.get(item.name)
        if required is not None and skill_level >= required:
            eligible.append(item)
    return eligible


def gather_xp(skill_level: int) -> int:
    return GATHER_BASE_XP + GATHER_XP_PER_LEVEL * skill_level


def resolve_gather(
    materials: Sequence[Item],
    unlocks: Mapping[str, int],
    skill_level: int,
    rng: RandomSource,
) -> Optional[GatherResolution]:
    """
    Roll a gathering outcome, or None when nothing is eligible.

    The caller decides what an empty pool means; the task service consumes
    the task and reports it as not found.
    """
    eligible = eligible_materials(materials, unlocks, skill_level)
    if not eligible:
        return None

    item = rng.choice(eligible)
    quantity = rng.randint(GATHER_MIN_QUANTITY, GATHER_MAX_QUANTITY)
    return GatherResolution(item=item, quantity=quantity, xp_gained=gather_xp(skill_level))


# ============================================================================
# ADVENTURE
# ============================================================================


def adventure_xp(tier: str, tiers: Mapping[str, Mapping[str, int]]) -> int:
    return int(tiers[tier]["xp"])
