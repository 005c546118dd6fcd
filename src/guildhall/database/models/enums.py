"""
Database Model Enums
====================

Lightweight enumerations for database models.

These enums provide type-safe constants for categorical fields across the
schema. Columns store the plain string value; services compare against the
enum members. They are declarative schema helpers, not business logic
containers (with the exception of `Tier.index`, which defines the ordering
used everywhere tiers and ranks are compared).
"""

from __future__ import annotations

import enum
from typing import Optional


class Tier(str, enum.Enum):
    """
    Ordinal quality rank shared by items, recipes, monsters, adventures and
    player ranks. F is the lowest, S the highest.
    """

    F = "F"
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    S = "S"

    @property
    def index(self) -> int:
        return _TIER_ORDER.index(self)

    def next(self) -> Optional["Tier"]:
        """The tier immediately above, or None at S."""
        i = self.index
        return _TIER_ORDER[i + 1] if i + 1 < len(_TIER_ORDER) else None

    def previous(self) -> Optional["Tier"]:
        """The tier immediately below, or None at F."""
        i = self.index
        return _TIER_ORDER[i - 1] if i > 0 else None

    @classmethod
    def parse(cls, value: object) -> Optional["Tier"]:
        if isinstance(value, Tier):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


_TIER_ORDER = [Tier.F, Tier.D, Tier.C, Tier.B, Tier.A, Tier.S]


class SkillType(str, enum.Enum):
    """Six independently leveled skill tracks."""

    WOOD = "wood"
    MINING = "mining"
    ANIMAL = "animal"
    PLANTS = "plants"
    CRAFTING = "crafting"
    COOKING = "cooking"


class GatherCategory(str, enum.Enum):
    """
    Gatherable material categories.

    Each one doubles as the skill track that levels when it is gathered.
    """

    WOOD = "wood"
    MINING = "mining"
    ANIMAL = "animal"
    PLANTS = "plants"

    @property
    def skill_type(self) -> SkillType:
        return SkillType(self.value)

    @classmethod
    def parse(cls, value: object) -> Optional["GatherCategory"]:
        if isinstance(value, GatherCategory):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


class TaskType(str, enum.Enum):
    CRAFTING = "crafting"
    GATHERING = "gathering"
    ADVENTURE = "adventure"


class ItemKind(str, enum.Enum):
    MATERIAL = "material"
    PRODUCT = "product"


class ItemCategory(str, enum.Enum):
    WOOD = "wood"
    MINING = "mining"
    ANIMAL = "animal"
    PLANTS = "plants"
    BASIC = "basic"
    INGOT = "ingot"
    GEAR = "gear"
    FOOD = "food"
    TRADE = "trade"
    MEDICINE = "medicine"


class Rarity(str, enum.Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class TemplateType(str, enum.Enum):
    """Adventure template flavor. Does not affect rewards."""

    HUNT = "hunt"
    RESOURCE = "resource"
    ESCORT = "escort"
    DUNGEON = "dungeon"
    EXPLORATION = "exploration"
    CONTRACT = "contract"


class CraftStatus(str, enum.Enum):
    SUCCESS = "success"
    DOWNGRADE = "downgrade"
    FAIL = "fail"
