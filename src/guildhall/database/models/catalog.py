"""
Catalog models: items, recipes, monsters and adventure templates.

Immutable reference data. Seeded from the packaged catalog file and read by
every task and shop operation; nothing in the engine writes to these tables
after seeding.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from guildhall.core.database.base import Base, IdMixin
from guildhall.database.models.enums import Rarity, SkillType, Tier


class Item(Base, IdMixin):
    """
    Anything that can sit in an inventory or a shop.

    `kind` separates gatherable materials from craftable products; `category`
    groups items for gathering, shop stock and crafting downgrades.
    """

    __tablename__ = "items"
    __table_args__ = (
        Index("ix_items_category_tier", "category", "tier"),
        CheckConstraint("damage >= 0", name="damage_non_negative"),
        CheckConstraint("stat_value >= 0", name="stat_value_non_negative"),
        CheckConstraint("base_price > 0", name="base_price_positive"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default=Rarity.COMMON.value)
    tier: Mapped[str] = mapped_column(String(1), nullable=False, default=Tier.F.value)
    damage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stat_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_price: Mapped[int] = mapped_column(Integer, nullable=False)


class Recipe(Base, IdMixin):
    """A timed transformation of ingredients into one unit of `item`."""

    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint("duration_seconds > 0", name="duration_positive"),
        CheckConstraint("min_skill_level >= 1", name="min_skill_positive"),
        CheckConstraint(
            "success_rate >= 0 AND success_rate <= 100", name="success_rate_range"
        ),
        CheckConstraint("xp_reward >= 0", name="xp_reward_non_negative"),
    )

    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skill_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SkillType.CRAFTING.value
    )
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    min_skill_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    success_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=10)

    item: Mapped[Item] = relationship(lazy="joined")
    ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        back_populates="recipe",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.item_id",
    )


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"
    __table_args__ = (CheckConstraint("quantity > 0", name="quantity_positive"),)

    recipe_id: Mapped[int] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True
    )
    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), primary_key=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="ingredients")
    item: Mapped[Item] = relationship(lazy="joined")


class Monster(Base, IdMixin):
    """Flavor data sampled at adventure start; stored by name in the task."""

    __tablename__ = "monsters"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    tier: Mapped[str] = mapped_column(String(1), nullable=False, index=True)


class AdventureTemplate(Base, IdMixin):
    """Adventure flavor. Rewards depend on tier only."""

    __tablename__ = "adventure_templates"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
