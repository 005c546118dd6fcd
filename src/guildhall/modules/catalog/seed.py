"""
Catalog seeding.

Loads the packaged `catalog.yaml` (items, recipes, monsters, adventure
templates and the starting shops) into an empty database. Seeding is
idempotent: it does nothing when any item already exists.

Usage
-----
    async with DatabaseService.get_transaction() as session:
        await seed_catalog(session, now_ms=clock.now_ms())
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guildhall.core.exceptions import ConfigurationError
from guildhall.core.logging.logger import get_logger
from guildhall.database.models.catalog import (
    AdventureTemplate,
    Item,
    Monster,
    Recipe,
    RecipeIngredient,
)
from guildhall.database.models.enums import ItemKind, SkillType, Tier
from guildhall.database.models.shop import Shop, ShopStock
from guildhall.modules.shared.constants import SHOP_INITIAL_MARKUP, SHOP_INITIAL_QUANTITY

logger = get_logger(__name__)

CATALOG_PATH = Path(__file__).resolve().parents[2] / "data" / "catalog.yaml"


def load_catalog_data(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read and minimally validate the catalog YAML document."""
    target = Path(path) if path is not None else CATALOG_PATH
    try:
        with target.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError("catalog", f"cannot load {target}: {exc}") from exc

    if not isinstance(data, dict) or "items" not in data:
        raise ConfigurationError("catalog", f"{target} has no 'items' section")
    return data


async def seed_catalog(
    session: AsyncSession,
    now_ms: int,
    path: Optional[Path] = None,
) -> Dict[str, int]:
    """
    Insert the catalog inside the caller's transaction.

    Returns:
        Row counts per table, all zero when the catalog was already present.
    """
    existing = (await session.execute(select(func.count()).select_from(Item))).scalar_one()
    if existing:
        logger.info("Catalog already seeded; skipping", extra={"item_count": existing})
        return {"items": 0, "recipes": 0, "monsters": 0, "templates": 0, "shops": 0}

    data = load_catalog_data(path)

    items_by_name: Dict[str, Item] = {}
    for raw_kind, categories in data["items"].items():
        kind = ItemKind(raw_kind).value
        for category, entries in categories.items():
            for entry in entries:
                item = Item(
                    name=entry["name"],
                    kind=kind,
                    category=category,
                    rarity=entry.get("rarity", "common"),
                    tier=Tier(entry.get("tier", "F")).value,
                    damage=int(entry.get("damage", 0)),
                    stat_value=int(entry.get("stat", 0)),
                    base_price=int(entry["price"]),
                )
                items_by_name[item.name] = item
    session.add_all(items_by_name.values())
    await session.flush()

    def item_id(name: str) -> int:
        item = items_by_name.get(name)
        if item is None:
            raise ConfigurationError("catalog", f"unknown item '{name}'")
        return item.id

    recipes = []
    for entry in data.get("recipes", []):
        recipe = Recipe(
            item_id=item_id(entry["item"]),
            skill_type=SkillType(entry.get("skill", SkillType.CRAFTING.value)).value,
            duration_seconds=int(entry["duration"]),
            min_skill_level=int(entry.get("min_skill", 1)),
            success_rate=int(entry.get("success_rate", 100)),
            xp_reward=int(entry.get("xp", 10)),
        )
        recipe.ingredients = [
            RecipeIngredient(item_id=item_id(name), quantity=int(quantity))
            for name, quantity in entry["ingredients"].items()
        ]
        recipes.append(recipe)
    session.add_all(recipes)

    monsters = [
        Monster(name=name, tier=Tier(tier).value)
        for tier, names in data.get("monsters", {}).items()
        for name in names
    ]
    session.add_all(monsters)

    templates = [
        AdventureTemplate(
            name=entry["name"],
            description=entry.get("description"),
            type=entry["type"],
        )
        for entry in data.get("templates", [])
    ]
    session.add_all(templates)

    shops = [
        Shop(name=entry["name"], category=entry["category"], last_refresh=now_ms)
        for entry in data.get("shops", [])
    ]
    session.add_all(shops)
    await session.flush()

    for shop in shops:
        session.add_all(
            ShopStock(
                shop_id=shop.id,
                item_id=item.id,
                quantity=SHOP_INITIAL_QUANTITY,
                price=math.floor(item.base_price * SHOP_INITIAL_MARKUP),
            )
            for item in items_by_name.values()
            if item.category == shop.category
        )
    await session.flush()

    counts = {
        "items": len(items_by_name),
        "recipes": len(recipes),
        "monsters": len(monsters),
        "templates": len(templates),
        "shops": len(shops),
    }
    logger.info("Catalog seeded", extra=counts)
    return counts
