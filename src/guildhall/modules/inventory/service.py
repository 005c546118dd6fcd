"""
InventoryService - item holdings per player
===========================================

Handles:
- Granting items (upsert of the `(player, item)` row)
- Validated removal of items
- Category holdings and draining across stacks (adventure supplies)
- The inventory listing

Every removal validates the held quantity first and raises
`InsufficientResourcesError` naming the item; the `quantity >= 0` check
constraint backs that up at the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from guildhall.core.database.service import DatabaseService
from guildhall.database.models.catalog import Item
from guildhall.database.models.inventory import InventoryEntry
from guildhall.modules.shared.base_repository import BaseRepository
from guildhall.modules.shared.base_service import BaseService
from guildhall.modules.shared.exceptions import InsufficientResourcesError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from guildhall.core.clock import Clock
    from guildhall.core.config.manager import ConfigManager
    from guildhall.core.random_source import RandomSource


class InventoryService(BaseService):
    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock=clock, rng=rng)
        self._entry_repo = BaseRepository[InventoryEntry](InventoryEntry, self.log)

    async def list_inventory(self, player_id: int) -> List[Dict[str, Any]]:
        """Held items (quantity above zero) with their catalog data, by item id."""
        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(InventoryEntry, Item)
                .join(Item, Item.id == InventoryEntry.item_id)
                .where(InventoryEntry.player_id == player_id, InventoryEntry.quantity > 0)
                .order_by(InventoryEntry.item_id)
            )
            return [
                {
                    "item_id": item.id,
                    "name": item.name,
                    "kind": item.kind,
                    "category": item.category,
                    "rarity": item.rarity,
                    "tier": item.tier,
                    "damage": item.damage,
                    "stat_value": item.stat_value,
                    "base_price": item.base_price,
                    "quantity": entry.quantity,
                }
                for entry, item in result.all()
            ]

    # -------------------------------------------------------------------------
    # Session-level helpers
    # -------------------------------------------------------------------------

    async def get_quantity(self, session: AsyncSession, player_id: int, item_id: int) -> int:
        entry = await self._entry_repo.get(session, (player_id, item_id))
        return entry.quantity if entry is not None else 0

    async def add_item(
        self, session: AsyncSession, player_id: int, item_id: int, quantity: int
    ) -> InventoryEntry:
        """Grant `quantity` units, creating the row on first grant."""
        self.validate_positive_int(quantity, "quantity")

        entry = await self._entry_repo.get_for_update(session, (player_id, item_id))
        if entry is None:
            try:
                async with session.begin_nested():
                    entry = InventoryEntry(player_id=player_id, item_id=item_id, quantity=quantity)
                    self._entry_repo.add(session, entry)
                return entry
            except IntegrityError:
                entry = await self._entry_repo.get_for_update(session, (player_id, item_id))
                if entry is None:
                    raise

        entry.quantity += quantity
        return entry

    async def remove_item(
        self,
        session: AsyncSession,
        player_id: int,
        item_id: int,
        quantity: int,
        item_name: Optional[str] = None,
    ) -> InventoryEntry:
        """
        Raises:
            InsufficientResourcesError: Fewer than `quantity` units held
        """
        entry = await self._entry_repo.get_for_update(session, (player_id, item_id))
        held = entry.quantity if entry is not None else 0
        if entry is None or held < quantity:
            raise InsufficientResourcesError(item_name or f"item {item_id}", quantity, held)

        entry.quantity -= quantity
        return entry

    async def holdings_in_category(
        self,
        session: AsyncSession,
        player_id: int,
        category: str,
        exclude_names: Iterable[str] = (),
    ) -> List[InventoryEntry]:
        """Non-empty stacks of a category in ascending item id order."""
        excluded = list(exclude_names)
        stmt = (
            select(InventoryEntry)
            .join(Item, Item.id == InventoryEntry.item_id)
            .where(
                InventoryEntry.player_id == player_id,
                InventoryEntry.quantity > 0,
                Item.category == category,
            )
            .order_by(InventoryEntry.item_id)
            .with_for_update()
        )
        if excluded:
            stmt = stmt.where(Item.name.not_in(excluded))

        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def drain(entries: Sequence[InventoryEntry], amount: int) -> int:
        """
        Remove `amount` units across `entries` in the given order, emptying
        each stack before moving on. Returns the amount actually removed;
        callers validate the total beforehand.
        """
        remaining = amount
        for entry in entries:
            if remaining <= 0:
                break
            taken = min(entry.quantity, remaining)
            entry.quantity -= taken
            remaining -= taken
        return amount - remaining
