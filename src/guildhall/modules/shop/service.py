"""
ShopService - NPC shops, stock refresh, buying and selling
==========================================================

Handles:
- Shop listing
- Stock reads with lazy wholesale regeneration once the refresh interval
  has passed
- Buying from shop stock and selling back for gold

Refresh is triggered by reads; there is no background job. Two concurrent
readers may both regenerate the same shop, and the last write wins.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import select

from guildhall.core.database.service import DatabaseService
from guildhall.database.models.catalog import Item
from guildhall.database.models.shop import Shop, ShopStock
from guildhall.modules.shared.base_repository import BaseRepository
from guildhall.modules.shared.base_service import BaseService
from guildhall.modules.shared.constants import (
    SHOP_PRICE_MAX_FACTOR,
    SHOP_PRICE_MIN_FACTOR,
    SHOP_REFRESH_INTERVAL_SECONDS,
    SHOP_RESTOCK_MAX_QUANTITY,
    SHOP_RESTOCK_MIN_QUANTITY,
    SHOP_SELL_RATIO,
)
from guildhall.modules.shared.exceptions import (
    InsufficientResourcesError,
    NotFoundError,
)

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from guildhall.core.clock import Clock
    from guildhall.core.config.manager import ConfigManager
    from guildhall.core.random_source import RandomSource
    from guildhall.modules.catalog.service import CatalogService
    from guildhall.modules.inventory.service import InventoryService
    from guildhall.modules.player.service import PlayerService


class ShopService(BaseService):
    """
    Business Logic:
    - Restocked quantity is uniform in [10, 60)
    - Restocked price is `floor(base_price * u)` with `u` uniform in
      [0.8, 1.2], never below 1
    - Items sell back for `floor(base_price * 0.8)` each
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        players: PlayerService,
        inventory: InventoryService,
        catalog: CatalogService,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock=clock, rng=rng)
        self._players = players
        self._inventory = inventory
        self._catalog = catalog
        self._shop_repo = BaseRepository[Shop](Shop, self.log)
        self._stock_repo = BaseRepository[ShopStock](ShopStock, self.log)

    # -------------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------------

    def sell_price(self, item: Item) -> int:
        ratio = float(self.get_config("shops.sell_ratio", SHOP_SELL_RATIO))
        return math.floor(item.base_price * ratio)

    def _refresh_interval_ms(self) -> int:
        seconds = self.get_config("shops.refresh_interval_seconds", SHOP_REFRESH_INTERVAL_SECONDS)
        return int(seconds) * 1000

    def _restock_entry(self, item: Item) -> Dict[str, int]:
        quantity = math.floor(
            self.rng.random() * (SHOP_RESTOCK_MAX_QUANTITY - SHOP_RESTOCK_MIN_QUANTITY)
        ) + SHOP_RESTOCK_MIN_QUANTITY
        factor = self.rng.uniform(SHOP_PRICE_MIN_FACTOR, SHOP_PRICE_MAX_FACTOR)
        price = max(1, math.floor(item.base_price * factor))
        return {"quantity": quantity, "price": price}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_shops(self) -> List[Dict[str, Any]]:
        async with DatabaseService.get_session() as session:
            shops = await self._shop_repo.find_many_where(session, order_by=[Shop.id])
            return [
                {
                    "shop_id": shop.id,
                    "name": shop.name,
                    "category": shop.category,
                    "last_refresh": shop.last_refresh,
                }
                for shop in shops
            ]

    async def get_stock(self, shop_id: int) -> List[Dict[str, Any]]:
        """
        Current stock of a shop, regenerating it first if it is stale.

        Raises:
            NotFoundError: Unknown shop
        """
        async with DatabaseService.get_transaction() as session:
            shop = await self._shop_repo.get(session, shop_id)
            if shop is None:
                raise NotFoundError("Shop", shop_id)

            now = self.now_ms()
            if now - shop.last_refresh > self._refresh_interval_ms():
                await self._refresh(session, shop, now)

            result = await session.execute(
                select(ShopStock, Item)
                .join(Item, Item.id == ShopStock.item_id)
                .where(ShopStock.shop_id == shop.id)
                .order_by(ShopStock.item_id)
            )
            return [
                {
                    "shop_id": stock.shop_id,
                    "item_id": item.id,
                    "name": item.name,
                    "category": item.category,
                    "kind": item.kind,
                    "quantity": stock.quantity,
                    "price": stock.price,
                }
                for stock, item in result.all()
            ]

    async def _refresh(self, session: AsyncSession, shop: Shop, now: int) -> None:
        await self._stock_repo.delete_where(session, ShopStock.shop_id == shop.id)

        items = await self._catalog.items_in_category(session, shop.category)
        self._stock_repo.add_many(
            session,
            [ShopStock(shop_id=shop.id, item_id=item.id, **self._restock_entry(item)) for item in items],
        )
        shop.last_refresh = now
        await self._stock_repo.flush(session)

        self.log.info(
            "Shop stock refreshed",
            extra={"shop_id": shop.id, "category": shop.category, "item_count": len(items)},
        )

    # -------------------------------------------------------------------------
    # Trades
    # -------------------------------------------------------------------------

    async def buy(self, player_id: int, shop_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        """
        Buy `quantity` units from a shop.

        Raises:
            ValidationError: Non-positive quantity
            InsufficientResourcesError: "stock" or "gold" short
        """
        self.validate_positive_int(quantity, "quantity")

        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)

            stock = await self._stock_repo.get_for_update(session, (shop_id, item_id))
            available = stock.quantity if stock is not None else 0
            if stock is None or available < quantity:
                raise InsufficientResourcesError("stock", quantity, available)

            total_cost = stock.price * quantity
            if player.gold < total_cost:
                raise InsufficientResourcesError("gold", total_cost, player.gold)

            player.gold -= total_cost
            stock.quantity -= quantity
            await self._inventory.add_item(session, player.id, item_id, quantity)

            self.log_operation(
                "shop_buy",
                player_id=player.id,
                shop_id=shop_id,
                item_id=item_id,
                quantity=quantity,
                total_cost=total_cost,
            )
            return {"gold_spent": total_cost, "gold": player.gold}

    async def sell(self, player_id: int, item_id: int, quantity: int) -> int:
        """
        Sell held items back for gold.

        Returns:
            Gold earned

        Raises:
            ValidationError: Non-positive quantity
            NotFoundError: Unknown item
            InsufficientResourcesError: Fewer units held than offered
        """
        self.validate_positive_int(quantity, "quantity")

        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)

            item = await self._catalog.get_item(session, item_id)
            if item is None:
                raise NotFoundError("Item", item_id)

            await self._inventory.remove_item(
                session, player.id, item.id, quantity, item_name=item.name
            )
            gold_earned = self.sell_price(item) * quantity
            player.gold += gold_earned

            self.log_operation(
                "shop_sell",
                player_id=player.id,
                item_id=item.id,
                quantity=quantity,
                gold_earned=gold_earned,
            )
            return gold_earned
