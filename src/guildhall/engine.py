"""
GameEngine - the exposed operations of Guildhall
================================================

Purpose
-------
Single entry point for request handlers. Wires every domain service with the
shared `ConfigManager`, `Clock` and `RandomSource`, resolves the caller's
stable identity (`user_id`) to a player, and runs each operation inside a
`LogContext` so every record it emits carries the user, player and
operation.

Identity verification happens before the engine is called; the engine only
ever sees an already-verified `user_id`. Resolving that id is self-healing:
an unknown id creates the player with starting defaults and all six skill
tracks.

Lifecycle
---------
    engine = GameEngine()
    await engine.startup()                 # initialize DB, create schema, seed catalog
    end_time = await engine.start_craft("user-1", recipe_id=18)
    ...
    await engine.shutdown()
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from guildhall.core.clock import Clock, SystemClock
from guildhall.core.config.config import Config
from guildhall.core.config.manager import ConfigManager
from guildhall.core.database.service import DatabaseService
from guildhall.core.logging.logger import LogContext, get_logger
from guildhall.core.random_source import DefaultRandomSource, RandomSource
from guildhall.modules.catalog import CatalogService, seed_catalog
from guildhall.modules.guild import GuildService
from guildhall.modules.inventory import InventoryService
from guildhall.modules.player import PlayerService
from guildhall.modules.shop import ShopService
from guildhall.modules.tasks import (
    ActiveTaskView,
    AdventureOutcome,
    CraftOutcome,
    GatherOutcome,
    TaskService,
)

logger = get_logger(__name__)


class GameEngine:
    """
    Facade over the domain services.

    Args:
        config_manager: Balance configuration; the `ConfigManager` singleton
            unless a test supplies its own
        clock: Time source; wall clock by default
        rng: Randomness source; unseeded system randomness by default
    """

    def __init__(
        self,
        config_manager: Any = ConfigManager,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.clock: Clock = clock or SystemClock()
        self.rng: RandomSource = rng or DefaultRandomSource()
        self._config = config_manager

        common = {"clock": self.clock, "rng": self.rng}
        self.catalog = CatalogService(config_manager, get_logger("guildhall.catalog"), **common)
        self.players = PlayerService(config_manager, get_logger("guildhall.player"), **common)
        self.inventory = InventoryService(
            config_manager, get_logger("guildhall.inventory"), **common
        )
        self.tasks = TaskService(
            config_manager,
            get_logger("guildhall.tasks"),
            players=self.players,
            inventory=self.inventory,
            catalog=self.catalog,
            **common,
        )
        self.guilds = GuildService(
            config_manager, get_logger("guildhall.guild"), players=self.players, **common
        )
        self.shops = ShopService(
            config_manager,
            get_logger("guildhall.shop"),
            players=self.players,
            inventory=self.inventory,
            catalog=self.catalog,
            **common,
        )

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def startup(self, database_url: Optional[str] = None, seed: bool = True) -> None:
        """Initialize the database, create missing tables and seed the catalog."""
        await DatabaseService.initialize(database_url)
        await DatabaseService.create_all()
        if seed:
            async with DatabaseService.get_transaction() as session:
                await seed_catalog(session, now_ms=self.clock.now_ms())
        logger.info("GameEngine started", extra=Config.get_config_summary())

    async def shutdown(self) -> None:
        await DatabaseService.shutdown()
        logger.info("GameEngine stopped")

    async def _player_id(self, user_id: str) -> int:
        return await self.players.resolve_player_id(user_id)

    # ========================================================================
    # Tasks
    # ========================================================================

    async def start_craft(self, user_id: str, recipe_id: int) -> int:
        async with LogContext(user_id=user_id, operation="start_craft"):
            return await self.tasks.start_craft(await self._player_id(user_id), recipe_id)

    async def claim_craft(self, user_id: str) -> CraftOutcome:
        async with LogContext(user_id=user_id, operation="claim_craft"):
            return await self.tasks.claim_craft(await self._player_id(user_id))

    async def start_gather(self, user_id: str, category: str) -> int:
        async with LogContext(user_id=user_id, operation="start_gather"):
            return await self.tasks.start_gather(await self._player_id(user_id), category)

    async def claim_gather(self, user_id: str) -> GatherOutcome:
        async with LogContext(user_id=user_id, operation="claim_gather"):
            return await self.tasks.claim_gather(await self._player_id(user_id))

    async def start_adventure(self, user_id: str, tier: str, template_id: int) -> int:
        async with LogContext(user_id=user_id, operation="start_adventure"):
            return await self.tasks.start_adventure(
                await self._player_id(user_id), tier, template_id
            )

    async def claim_adventure(self, user_id: str) -> AdventureOutcome:
        async with LogContext(user_id=user_id, operation="claim_adventure"):
            return await self.tasks.claim_adventure(await self._player_id(user_id))

    async def list_active_tasks(self, user_id: str) -> List[ActiveTaskView]:
        async with LogContext(user_id=user_id, operation="list_active_tasks"):
            return await self.tasks.list_active_tasks(await self._player_id(user_id))

    # ========================================================================
    # Guilds
    # ========================================================================

    async def create_guild(self, user_id: str, name: str) -> int:
        async with LogContext(user_id=user_id, operation="create_guild"):
            return await self.guilds.create_guild(await self._player_id(user_id), name)

    async def get_guild(self, user_id: str) -> Optional[Dict[str, Any]]:
        """The caller's guild and members, or None."""
        async with LogContext(user_id=user_id, operation="get_guild"):
            return await self.guilds.get_player_guild(await self._player_id(user_id))

    async def promote_guild(self, guild_id: int, requesting_user_id: str) -> int:
        async with LogContext(
            user_id=requesting_user_id, guild_id=guild_id, operation="promote_guild"
        ):
            return await self.guilds.promote_guild(
                guild_id, await self._player_id(requesting_user_id)
            )

    # ========================================================================
    # Player
    # ========================================================================

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        async with LogContext(user_id=user_id, operation="get_profile"):
            return await self.players.get_profile(await self._player_id(user_id))

    async def get_inventory(self, user_id: str) -> List[Dict[str, Any]]:
        async with LogContext(user_id=user_id, operation="get_inventory"):
            return await self.inventory.list_inventory(await self._player_id(user_id))

    # ========================================================================
    # Shops
    # ========================================================================

    async def list_shops(self) -> List[Dict[str, Any]]:
        return await self.shops.list_shops()

    async def get_shop_stock(self, shop_id: int) -> List[Dict[str, Any]]:
        async with LogContext(operation="get_shop_stock", shop_id=shop_id):
            return await self.shops.get_stock(shop_id)

    async def buy(
        self, user_id: str, shop_id: int, item_id: int, quantity: int
    ) -> Dict[str, Any]:
        async with LogContext(user_id=user_id, operation="shop_buy"):
            return await self.shops.buy(
                await self._player_id(user_id), shop_id, item_id, quantity
            )

    async def sell(self, user_id: str, item_id: int, quantity: int) -> int:
        async with LogContext(user_id=user_id, operation="shop_sell"):
            return await self.shops.sell(await self._player_id(user_id), item_id, quantity)

    # ========================================================================
    # Catalog
    # ========================================================================

    async def list_items(self) -> List[Dict[str, Any]]:
        return await self.catalog.list_items()

    async def list_recipes(self) -> List[Dict[str, Any]]:
        return await self.catalog.list_recipes()

    async def get_recipe(self, recipe_id: int) -> Dict[str, Any]:
        return await self.catalog.get_recipe(recipe_id)

    async def list_monsters(self) -> List[Dict[str, Any]]:
        return await self.catalog.list_monsters()

    async def list_templates(self) -> List[Dict[str, Any]]:
        return await self.catalog.list_templates()
