"""
CatalogService - read access to immutable reference data
=========================================================

Handles:
- Item, recipe, monster and adventure template listings
- Session-level lookups used by the task and shop services

Catalog rows are written once by `seed_catalog` and never mutated, so the
listing methods use read-only sessions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from guildhall.core.database.service import DatabaseService
from guildhall.database.models.catalog import (
    AdventureTemplate,
    Item,
    Monster,
    Recipe,
)
from guildhall.database.models.enums import ItemKind
from guildhall.modules.shared.base_repository import BaseRepository
from guildhall.modules.shared.base_service import BaseService
from guildhall.modules.shared.exceptions import RecipeNotFoundError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from guildhall.core.clock import Clock
    from guildhall.core.config.manager import ConfigManager
    from guildhall.core.random_source import RandomSource


class CatalogService(BaseService):
    """Catalog listings plus the lookups other services compose."""

    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock=clock, rng=rng)
        self._item_repo = BaseRepository[Item](Item, self.log)
        self._recipe_repo = BaseRepository[Recipe](Recipe, self.log)
        self._monster_repo = BaseRepository[Monster](Monster, self.log)
        self._template_repo = BaseRepository[AdventureTemplate](AdventureTemplate, self.log)

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def list_items(self) -> List[Dict[str, Any]]:
        async with DatabaseService.get_session() as session:
            items = await self._item_repo.find_many_where(session, order_by=[Item.id])
            return [self.item_to_dict(item) for item in items]

    async def list_recipes(self) -> List[Dict[str, Any]]:
        """All recipes with their output item and ingredient list."""
        async with DatabaseService.get_session() as session:
            recipes = await self._recipe_repo.find_many_where(session, order_by=[Recipe.id])
            return [self.recipe_to_dict(recipe) for recipe in recipes]

    async def get_recipe(self, recipe_id: int) -> Dict[str, Any]:
        """
        Raises:
            RecipeNotFoundError: Unknown recipe id
        """
        async with DatabaseService.get_session() as session:
            recipe = await self.load_recipe(session, recipe_id)
            if recipe is None:
                raise RecipeNotFoundError(recipe_id)
            return self.recipe_to_dict(recipe)

    async def list_monsters(self) -> List[Dict[str, Any]]:
        async with DatabaseService.get_session() as session:
            monsters = await self._monster_repo.find_many_where(session, order_by=[Monster.id])
            return [{"id": m.id, "name": m.name, "tier": m.tier} for m in monsters]

    async def list_templates(self) -> List[Dict[str, Any]]:
        async with DatabaseService.get_session() as session:
            templates = await self._template_repo.find_many_where(
                session, order_by=[AdventureTemplate.id]
            )
            return [
                {
                    "id": t.id,
                    "name": t.name,
                    "description": t.description,
                    "type": t.type,
                }
                for t in templates
            ]

    # -------------------------------------------------------------------------
    # Session-level lookups
    # -------------------------------------------------------------------------

    async def load_recipe(self, session: AsyncSession, recipe_id: Any) -> Optional[Recipe]:
        if isinstance(recipe_id, bool) or not isinstance(recipe_id, int):
            return None
        return await self._recipe_repo.get(session, recipe_id)

    async def get_item(self, session: AsyncSession, item_id: int) -> Optional[Item]:
        return await self._item_repo.get(session, item_id)

    async def get_item_by_name(self, session: AsyncSession, name: str) -> Optional[Item]:
        return await self._item_repo.find_one_where(session, Item.name == name)

    async def items_in_category(self, session: AsyncSession, category: str) -> List[Item]:
        return await self._item_repo.find_many_where(
            session, Item.category == category, order_by=[Item.id]
        )

    async def materials_in_category(self, session: AsyncSession, category: str) -> List[Item]:
        return await self._item_repo.find_many_where(
            session,
            Item.category == category,
            Item.kind == ItemKind.MATERIAL.value,
            order_by=[Item.id],
        )

    async def products_at_tier(
        self, session: AsyncSession, category: str, tier: str
    ) -> List[Item]:
        return await self._item_repo.find_many_where(
            session,
            Item.category == category,
            Item.tier == tier,
            Item.kind == ItemKind.PRODUCT.value,
            order_by=[Item.id],
        )

    async def monsters_of_tier(self, session: AsyncSession, tier: str) -> List[Monster]:
        return await self._monster_repo.find_many_where(
            session, Monster.tier == tier, order_by=[Monster.id]
        )

    async def get_template(
        self, session: AsyncSession, template_id: Any
    ) -> Optional[AdventureTemplate]:
        if isinstance(template_id, bool) or not isinstance(template_id, int):
            return None
        return await self._template_repo.get(session, template_id)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @staticmethod
    def item_to_dict(item: Item) -> Dict[str, Any]:
        return {
            "id": item.id,
            "name": item.name,
            "kind": item.kind,
            "category": item.category,
            "rarity": item.rarity,
            "tier": item.tier,
            "damage": item.damage,
            "stat_value": item.stat_value,
            "base_price": item.base_price,
        }

    @classmethod
    def recipe_to_dict(cls, recipe: Recipe) -> Dict[str, Any]:
        return {
            "id": recipe.id,
            "item": cls.item_to_dict(recipe.item),
            "skill_type": recipe.skill_type,
            "duration_seconds": recipe.duration_seconds,
            "min_skill_level": recipe.min_skill_level,
            "success_rate": recipe.success_rate,
            "xp_reward": recipe.xp_reward,
            "ingredients": [
                {
                    "item_id": ingredient.item_id,
                    "name": ingredient.item.name,
                    "quantity": ingredient.quantity,
                }
                for ingredient in recipe.ingredients
            ],
        }
