"""
Database Models Package
=======================

SQLAlchemy ORM models for Guildhall, one module per aggregate.

All models:
- are schema-only, with no business logic
- use `Mapped[]` with `mapped_column()`
- declare explicit foreign keys with CASCADE rules
- store timestamps used by game rules as epoch milliseconds

Importing this package registers every table on `Base.metadata`.
"""

from guildhall.core.database.base import Base

from .catalog import AdventureTemplate, Item, Monster, Recipe, RecipeIngredient
from .enums import (
    CraftStatus,
    GatherCategory,
    ItemCategory,
    ItemKind,
    Rarity,
    SkillType,
    TaskType,
    TemplateType,
    Tier,
)
from .guild import Guild, GuildMember
from .inventory import InventoryEntry
from .player import Player, PlayerSkill
from .shop import Shop, ShopStock
from .task import ActiveTask

__all__ = [
    "Base",
    # Catalog
    "Item",
    "Recipe",
    "RecipeIngredient",
    "Monster",
    "AdventureTemplate",
    # Player
    "Player",
    "PlayerSkill",
    "InventoryEntry",
    "ActiveTask",
    # Social
    "Guild",
    "GuildMember",
    # Economy
    "Shop",
    "ShopStock",
    # Enums
    "Tier",
    "SkillType",
    "GatherCategory",
    "TaskType",
    "ItemKind",
    "ItemCategory",
    "Rarity",
    "TemplateType",
    "CraftStatus",
]
