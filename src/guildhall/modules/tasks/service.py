"""
TaskService - timed task lifecycle
==================================

Handles:
- Starting crafting, gathering and adventure tasks
- Claiming finished tasks and applying their resolved rewards
- Listing a player's active tasks

State machine per `(player, task_type)`:

    None --start--> Active --(clock reaches end_time)--> Claimable --claim--> None

Claimable is a time predicate and never stored. At most one task per type
exists, enforced by the `(player_id, task_type)` unique constraint; a start
that loses an insert race surfaces as `AlreadyActiveError`.

Start preconditions are checked in a fixed order and the first failure wins:
an active task of the same type, then the type-specific checks. Costs are
validated in full before anything is deducted.

A claim deletes its task with a conditional `DELETE ... WHERE id = :id`. If
another claim already removed the row, the delete affects nothing and the
whole claim rolls back with `NoActiveTaskError`, so rewards are granted at
most once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from guildhall.core.database.service import DatabaseService
from guildhall.database.models.enums import (
    GatherCategory,
    ItemCategory,
    TaskType,
    Tier,
)
from guildhall.database.models.task import ActiveTask
from guildhall.modules.guild.rank_gate import can_attempt_tier
from guildhall.modules.progression.logic import apply_rank_xp
from guildhall.modules.rewards.resolver import (
    adventure_xp,
    downgrade_tier,
    resolve_craft,
    resolve_gather,
)
from guildhall.modules.shared.base_repository import BaseRepository
from guildhall.modules.shared.base_service import BaseService
from guildhall.modules.shared.constants import (
    ADVENTURE_COOLDOWN_SECONDS,
    ADVENTURE_TIERS,
    CRAFT_DOWNGRADE_CHANCE,
    CRAFT_FAIL_XP_RATIO,
    GATHER_DURATIONS_SECONDS,
    GATHER_UNLOCKS,
    UNKNOWN_MONSTER_NAME,
    WATER_ITEM_NAME,
)
from guildhall.modules.shared.exceptions import (
    AlreadyActiveError,
    CooldownActiveError,
    InsufficientResourcesError,
    InvalidCategoryError,
    InvalidTemplateError,
    InvalidTierError,
    NoActiveTaskError,
    NoGatherableItemsError,
    NotFinishedError,
    RankTooLowError,
    RecipeNotFoundError,
    SkillTooLowError,
)
from guildhall.modules.tasks.payloads import (
    ActiveTaskView,
    AdventureOutcome,
    AdventurePayload,
    CraftOutcome,
    GatherOutcome,
    remaining_seconds,
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


class TaskService(BaseService):
    """
    Start and claim time-boxed player activities.

    Business Logic:
    - Crafting costs every recipe ingredient up front and rolls
      success/downgrade/fail at claim time
    - Gathering is free and grants 1-3 units of an unlocked material
    - Adventures cost food, water and medicine by tier, respect a cooldown
      after the previous claim and feed adventure rank
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
        self._task_repo = BaseRepository[ActiveTask](ActiveTask, self.log)

    # -------------------------------------------------------------------------
    # Balance config
    # -------------------------------------------------------------------------

    def _gather_duration(self, category: str) -> int:
        durations = self.get_config("tasks.gathering.durations", GATHER_DURATIONS_SECONDS)
        return int(durations.get(category, GATHER_DURATIONS_SECONDS[category]))

    def _gather_unlocks(self, category: str) -> Mapping[str, int]:
        unlocks = self.get_config("tasks.gathering.unlocks", GATHER_UNLOCKS)
        return unlocks.get(category, GATHER_UNLOCKS[category])

    def _adventure_tiers(self) -> Mapping[str, Mapping[str, int]]:
        return self.get_config("tasks.adventure.tiers", ADVENTURE_TIERS)

    def _adventure_cooldown_ms(self) -> int:
        seconds = self.get_config("tasks.adventure.cooldown_seconds", ADVENTURE_COOLDOWN_SECONDS)
        return int(seconds) * 1000

    # -------------------------------------------------------------------------
    # Crafting
    # -------------------------------------------------------------------------

    async def start_craft(self, player_id: int, recipe_id: Any) -> int:
        """
        Start crafting `recipe_id`, consuming its ingredients.

        Returns:
            End time in epoch milliseconds

        Raises:
            AlreadyActiveError: A crafting task is already active
            RecipeNotFoundError: Unknown recipe
            SkillTooLowError: Recipe skill below `min_skill_level`
            InsufficientResourcesError: An ingredient is short (named)
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)
            await self._ensure_no_active(session, player.id, TaskType.CRAFTING)

            recipe = await self._catalog.load_recipe(session, recipe_id)
            if recipe is None:
                raise RecipeNotFoundError(recipe_id)

            skill = await self._players.get_or_create_skill(session, player.id, recipe.skill_type)
            if skill.level < recipe.min_skill_level:
                raise SkillTooLowError(recipe.skill_type, recipe.min_skill_level, skill.level)

            for ingredient in recipe.ingredients:
                held = await self._inventory.get_quantity(session, player.id, ingredient.item_id)
                if held < ingredient.quantity:
                    raise InsufficientResourcesError(
                        ingredient.item.name, ingredient.quantity, held
                    )

            for ingredient in recipe.ingredients:
                await self._inventory.remove_item(
                    session,
                    player.id,
                    ingredient.item_id,
                    ingredient.quantity,
                    item_name=ingredient.item.name,
                )

            end_time = await self._insert_task(
                session,
                player.id,
                TaskType.CRAFTING,
                recipe.duration_seconds,
                target_id=recipe.id,
            )

            self.log_operation(
                "start_craft",
                player_id=player.id,
                recipe_id=recipe.id,
                item=recipe.item.name,
                end_time=end_time,
            )
            return end_time

    async def claim_craft(self, player_id: int) -> CraftOutcome:
        """
        Resolve a finished craft.

        Raises:
            NoActiveTaskError: No crafting task, or it was already claimed
            NotFinishedError: The task's end time has not been reached
            RecipeNotFoundError: The task's recipe no longer exists
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)
            task = await self._claimable_task(session, player.id, TaskType.CRAFTING)

            recipe = await self._catalog.load_recipe(session, task.target_id)
            if recipe is None:
                raise RecipeNotFoundError(task.target_id)

            skill = await self._players.get_or_create_skill(session, player.id, recipe.skill_type)

            lower_tier = downgrade_tier(recipe.item.tier)
            candidates = (
                await self._catalog.products_at_tier(session, recipe.item.category, lower_tier.value)
                if lower_tier is not None
                else []
            )

            resolution = resolve_craft(
                recipe,
                skill.level,
                candidates,
                self.rng,
                fail_xp_ratio=float(self.get_config("crafting.fail_xp_ratio", CRAFT_FAIL_XP_RATIO)),
                downgrade_chance=float(
                    self.get_config("crafting.downgrade_chance", CRAFT_DOWNGRADE_CHANCE)
                ),
            )

            if resolution.item is not None:
                await self._inventory.add_item(session, player.id, resolution.item.id, 1)

            await self._players.grant_skill_xp(
                session, player.id, recipe.skill_type, resolution.xp_gained
            )
            await self._delete_task(session, task)

            self.log_operation(
                "claim_craft",
                player_id=player.id,
                recipe_id=recipe.id,
                status=resolution.status.value,
                reward=resolution.item.name if resolution.item else None,
                xp_gained=resolution.xp_gained,
                roll=round(resolution.roll, 3),
                final_chance=resolution.final_chance,
            )
            return CraftOutcome(
                status=resolution.status,
                reward_item_name=resolution.item.name if resolution.item else None,
                xp_gained=resolution.xp_gained,
            )

    # -------------------------------------------------------------------------
    # Gathering
    # -------------------------------------------------------------------------

    async def start_gather(self, player_id: int, category: Any) -> int:
        """
        Start gathering in `category`. Gathering has no cost.

        Raises:
            AlreadyActiveError: A gathering task is already active
            InvalidCategoryError: Not one of wood, mining, animal, plants
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)
            await self._ensure_no_active(session, player.id, TaskType.GATHERING)

            gather_category = GatherCategory.parse(category)
            if gather_category is None:
                raise InvalidCategoryError(category)

            end_time = await self._insert_task(
                session,
                player.id,
                TaskType.GATHERING,
                self._gather_duration(gather_category.value),
                category=gather_category.value,
            )

            self.log_operation(
                "start_gather",
                player_id=player.id,
                category=gather_category.value,
                end_time=end_time,
            )
            return end_time

    async def claim_gather(self, player_id: int) -> GatherOutcome:
        """
        Resolve a finished gathering task.

        Raises:
            NoActiveTaskError: No gathering task, or it was already claimed
            NotFinishedError: The task's end time has not been reached
            NoGatherableItemsError: Nothing in the category is unlocked at the
                player's level; the task is consumed regardless
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)
            task = await self._claimable_task(session, player.id, TaskType.GATHERING)

            category = GatherCategory(task.category)
            skill = await self._players.get_or_create_skill(
                session, player.id, category.skill_type.value
            )
            materials = await self._catalog.materials_in_category(session, category.value)
            resolution = resolve_gather(
                materials, self._gather_unlocks(category.value), skill.level, self.rng
            )

            await self._delete_task(session, task)

            if resolution is not None:
                await self._inventory.add_item(
                    session, player.id, resolution.item.id, resolution.quantity
                )
                await self._players.grant_skill_xp(
                    session, player.id, category.skill_type.value, resolution.xp_gained
                )
                self.log_operation(
                    "claim_gather",
                    player_id=player.id,
                    category=category.value,
                    reward=resolution.item.name,
                    quantity=resolution.quantity,
                    xp_gained=resolution.xp_gained,
                )
                return GatherOutcome(
                    reward_item=resolution.item.name,
                    quantity=resolution.quantity,
                    xp_gained=resolution.xp_gained,
                )

            self.log.warning(
                "Gathering claim found no eligible materials; task consumed",
                extra={
                    "player_id": player.id,
                    "category": category.value,
                    "skill_level": skill.level,
                },
            )
            empty_pool = NoGatherableItemsError(category.value, skill.level)

        # Raised after the commit so the task stays consumed.
        raise empty_pool

    # -------------------------------------------------------------------------
    # Adventures
    # -------------------------------------------------------------------------

    async def start_adventure(self, player_id: int, tier: Any, template_id: Any) -> int:
        """
        Start an adventure of `tier` using `template_id` for flavor.

        Food is every food-category stack except water, summed; water is the
        water item alone; medicine is every medicine-category stack, summed.
        Supplies are drained stack by stack in ascending item id order.

        Raises:
            AlreadyActiveError: An adventure is already active
            InvalidTierError: Tier not in F..S
            InvalidTemplateError: Unknown template
            RankTooLowError: Rank letter below the tier
            CooldownActiveError: Previous claim less than the cooldown ago
            InsufficientResourcesError: "food", "water" or "medicine" short
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)
            await self._ensure_no_active(session, player.id, TaskType.ADVENTURE)

            adventure_tier = Tier.parse(tier)
            tiers = self._adventure_tiers()
            if adventure_tier is None or adventure_tier.value not in tiers:
                raise InvalidTierError(tier)
            costs = tiers[adventure_tier.value]

            template = await self._catalog.get_template(session, template_id)
            if template is None:
                raise InvalidTemplateError(template_id)

            if not can_attempt_tier(player.rank_letter, adventure_tier.value):
                raise RankTooLowError(adventure_tier.value, player.rank_letter)

            now = self.now_ms()
            if player.last_adventure_claim:
                ready_at = player.last_adventure_claim + self._adventure_cooldown_ms()
                if now < ready_at:
                    raise CooldownActiveError("adventure", remaining_seconds(ready_at, now))

            food_needed = int(costs["food"])
            water_needed = int(costs["water"])
            medicine_needed = int(costs["medicine"])

            food_stacks = await self._inventory.holdings_in_category(
                session, player.id, ItemCategory.FOOD.value, exclude_names=[WATER_ITEM_NAME]
            )
            food_held = sum(entry.quantity for entry in food_stacks)
            if food_held < food_needed:
                raise InsufficientResourcesError("food", food_needed, food_held)

            water_item = await self._catalog.get_item_by_name(session, WATER_ITEM_NAME)
            water_held = (
                await self._inventory.get_quantity(session, player.id, water_item.id)
                if water_item is not None
                else 0
            )
            if water_held < water_needed:
                raise InsufficientResourcesError("water", water_needed, water_held)

            medicine_stacks = []
            if medicine_needed > 0:
                medicine_stacks = await self._inventory.holdings_in_category(
                    session, player.id, ItemCategory.MEDICINE.value
                )
                medicine_held = sum(entry.quantity for entry in medicine_stacks)
                if medicine_held < medicine_needed:
                    raise InsufficientResourcesError("medicine", medicine_needed, medicine_held)

            self._inventory.drain(food_stacks, food_needed)
            if water_needed > 0 and water_item is not None:
                await self._inventory.remove_item(
                    session, player.id, water_item.id, water_needed, item_name=WATER_ITEM_NAME
                )
            self._inventory.drain(medicine_stacks, medicine_needed)

            monsters = await self._catalog.monsters_of_tier(session, adventure_tier.value)
            monster_name = self.rng.choice(monsters).name if monsters else UNKNOWN_MONSTER_NAME

            payload = AdventurePayload(
                tier=adventure_tier.value,
                monster_name=monster_name,
                template_name=template.name,
                template_type=template.type,
            )
            end_time = await self._insert_task(
                session,
                player.id,
                TaskType.ADVENTURE,
                int(costs["duration"]),
                target_id=template.id,
                payload=payload.to_dict(),
            )

            self.log_operation(
                "start_adventure",
                player_id=player.id,
                tier=adventure_tier.value,
                template=template.name,
                monster=monster_name,
                end_time=end_time,
            )
            return end_time

    async def claim_adventure(self, player_id: int) -> AdventureOutcome:
        """
        Resolve a finished adventure into rank xp.

        Raises:
            NoActiveTaskError: No adventure, or it was already claimed
            NotFinishedError: The task's end time has not been reached
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)
            task = await self._claimable_task(session, player.id, TaskType.ADVENTURE)

            payload = AdventurePayload.from_dict(task.payload or {})
            xp_gained = adventure_xp(payload.tier, self._adventure_tiers())
            rank = apply_rank_xp(
                player.rank_letter, player.rank_level, player.adventure_xp, xp_gained
            )

            player.adventure_xp = rank.xp
            player.rank_level = rank.rank_level
            player.rank_letter = rank.rank_letter
            player.completed_adventures += 1
            player.last_adventure_claim = self.now_ms()

            await self._delete_task(session, task)

            self.log_operation(
                "claim_adventure",
                player_id=player.id,
                tier=payload.tier,
                monster=payload.monster_name,
                xp_gained=xp_gained,
                rank_letter=rank.rank_letter,
                rank_level=rank.rank_level,
                promoted=rank.promoted,
            )
            return AdventureOutcome(
                xp_gained=xp_gained,
                new_rank_letter=rank.rank_letter,
                new_rank_level=rank.rank_level,
            )

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def list_active_tasks(self, player_id: int) -> List[ActiveTaskView]:
        async with DatabaseService.get_session() as session:
            tasks = await self._task_repo.find_many_where(
                session, ActiveTask.player_id == player_id, order_by=[ActiveTask.id]
            )
            return [self._to_view(task) for task in tasks]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _ensure_no_active(
        self, session: AsyncSession, player_id: int, task_type: TaskType
    ) -> None:
        if await self._task_repo.exists(
            session,
            ActiveTask.player_id == player_id,
            ActiveTask.task_type == task_type.value,
        ):
            raise AlreadyActiveError(task_type.value)

    async def _insert_task(
        self,
        session: AsyncSession,
        player_id: int,
        task_type: TaskType,
        duration_seconds: int,
        target_id: Optional[int] = None,
        category: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> int:
        start_time = self.now_ms()
        end_time = start_time + int(duration_seconds) * 1000
        task = ActiveTask(
            player_id=player_id,
            task_type=task_type.value,
            target_id=target_id,
            category=category,
            payload=payload,
            start_time=start_time,
            end_time=end_time,
        )
        self._task_repo.add(session, task)
        try:
            await self._task_repo.flush(session)
        except IntegrityError:
            # A concurrent start for the same (player, type) committed first.
            raise AlreadyActiveError(task_type.value) from None
        return end_time

    async def _claimable_task(
        self, session: AsyncSession, player_id: int, task_type: TaskType
    ) -> ActiveTask:
        task = await self._task_repo.find_one_where(
            session,
            ActiveTask.player_id == player_id,
            ActiveTask.task_type == task_type.value,
        )
        if task is None:
            raise NoActiveTaskError(task_type.value)

        now = self.now_ms()
        if now < task.end_time:
            raise NotFinishedError(task_type.value, remaining_seconds(task.end_time, now))
        return task

    async def _delete_task(self, session: AsyncSession, task: ActiveTask) -> None:
        deleted = await self._task_repo.delete_where(session, ActiveTask.id == task.id)
        if deleted != 1:
            raise NoActiveTaskError(task.task_type)

    @staticmethod
    def _to_view(task: ActiveTask) -> ActiveTaskView:
        payload = (
            AdventurePayload.from_dict(task.payload)
            if task.task_type == TaskType.ADVENTURE.value and task.payload
            else None
        )
        return ActiveTaskView(
            id=task.id,
            task_type=TaskType(task.task_type),
            target_id=task.target_id,
            category=task.category,
            payload=payload,
            start_time=task.start_time,
            end_time=task.end_time,
        )
