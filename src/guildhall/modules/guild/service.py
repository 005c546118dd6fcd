"""
GuildService - guild creation, lookup and class promotion
=========================================================

Handles:
- Guild creation with the creator as leader and only member
- The player's guild view (guild plus members)
- Leader-requested class promotion

Promotion is all-or-nothing: the rank and adventure requirements are both
evaluated against the current membership before the class changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from guildhall.core.database.service import DatabaseService
from guildhall.database.models.enums import Tier
from guildhall.database.models.guild import Guild, GuildMember
from guildhall.database.models.player import Player
from guildhall.modules.guild.rank_gate import (
    next_class,
    required_adventures_for_class,
    required_rank_for_class,
)
from guildhall.modules.shared.base_repository import BaseRepository
from guildhall.modules.shared.base_service import BaseService
from guildhall.modules.shared.constants import (
    GUILD_NAME_MAX_LENGTH,
    GUILD_START_CLASS,
    GUILD_TOP_CLASS,
)
from guildhall.modules.shared.exceptions import (
    AlreadyInGuildError,
    GuildMaxClassError,
    GuildNameTakenError,
    GuildRequirementsUnmetError,
    NotFoundError,
    NotGuildLeaderError,
    ValidationError,
)

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from guildhall.core.clock import Clock
    from guildhall.core.config.manager import ConfigManager
    from guildhall.core.random_source import RandomSource
    from guildhall.modules.player.service import PlayerService


class GuildService(BaseService):
    """
    GuildService handles guild membership and prestige.

    Business Logic:
    - A player belongs to at most one guild
    - Guild names are unique
    - New guilds start at class 12; class 1 is the top
    - Only the leader may request a promotion
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        players: PlayerService,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock=clock, rng=rng)
        self._players = players
        self._guild_repo = BaseRepository[Guild](Guild, self.log)
        self._member_repo = BaseRepository[GuildMember](GuildMember, self.log)

    # -------------------------------------------------------------------------
    # Core Operations
    # -------------------------------------------------------------------------

    async def create_guild(self, player_id: int, name: Any) -> int:
        """
        Create a guild led by `player_id`.

        Returns:
            The new guild id

        Raises:
            ValidationError: Empty or overlong name
            AlreadyInGuildError: Player already belongs to a guild
            GuildNameTakenError: Another guild has this name
        """
        guild_name = str(name).strip() if name is not None else ""
        if not guild_name:
            raise ValidationError("name", "Guild name required")
        if len(guild_name) > GUILD_NAME_MAX_LENGTH:
            raise ValidationError(
                "name", f"Guild name must be at most {GUILD_NAME_MAX_LENGTH} characters"
            )

        async with DatabaseService.get_transaction() as session:
            player = await self._players.lock_player(session, player_id)

            if await self._member_repo.exists(session, GuildMember.player_id == player.id):
                raise AlreadyInGuildError(player.id)

            if await self._guild_repo.exists(session, Guild.name == guild_name):
                raise GuildNameTakenError(guild_name)

            guild = Guild(name=guild_name, guild_class=GUILD_START_CLASS, leader_id=player.id)
            self._guild_repo.add(session, guild)
            try:
                await self._guild_repo.flush(session)
                self._member_repo.add(session, GuildMember(guild_id=guild.id, player_id=player.id))
                await self._member_repo.flush(session)
            except IntegrityError:
                # Lost a race on either unique constraint; tell them apart by re-reading.
                await session.rollback()
                if await self._member_repo.exists(session, GuildMember.player_id == player.id):
                    raise AlreadyInGuildError(player.id) from None
                raise GuildNameTakenError(guild_name) from None

            self.log_operation(
                "create_guild", guild_id=guild.id, guild_name=guild_name, leader_id=player.id
            )
            return guild.id

    async def get_player_guild(self, player_id: int) -> Optional[Dict[str, Any]]:
        """The player's guild with its members, or None when unaffiliated."""
        async with DatabaseService.get_session() as session:
            membership = await self._member_repo.find_one_where(
                session, GuildMember.player_id == player_id
            )
            if membership is None:
                return None

            guild = await self._guild_repo.get(session, membership.guild_id)
            if guild is None:
                return None
            return await self._guild_view(session, guild)

    async def get_guild(self, guild_id: int) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: Unknown guild
        """
        async with DatabaseService.get_session() as session:
            guild = await self._guild_repo.get(session, guild_id)
            if guild is None:
                raise NotFoundError("Guild", guild_id)
            return await self._guild_view(session, guild)

    async def promote_guild(self, guild_id: int, requesting_player_id: int) -> int:
        """
        Promote a guild one class toward 1.

        Returns:
            The new class

        Raises:
            NotFoundError: Unknown guild
            NotGuildLeaderError: Requester is not the leader
            GuildMaxClassError: Guild is already class 1
            GuildRequirementsUnmetError: A member's rank or the adventure
                total falls short
        """
        async with DatabaseService.get_transaction() as session:
            guild = await self._guild_repo.get_for_update(session, guild_id)
            if guild is None:
                raise NotFoundError("Guild", guild_id)

            if guild.leader_id != requesting_player_id:
                raise NotGuildLeaderError(guild.id, requesting_player_id)

            if guild.guild_class <= GUILD_TOP_CLASS:
                raise GuildMaxClassError(guild.id)

            target_class = next_class(guild.guild_class)
            required_rank = Tier(required_rank_for_class(target_class))
            required_adventures = required_adventures_for_class(guild.guild_class)

            members = await self._member_players(session, guild.id)
            for member in members:
                if Tier(member.rank_letter).index < required_rank.index:
                    raise GuildRequirementsUnmetError(
                        "rank",
                        required_rank.value,
                        member.rank_letter,
                        f"All members must be at least {required_rank.value} rank "
                        f"for Class {target_class}",
                    )

            total_adventures = sum(member.completed_adventures for member in members)
            if total_adventures < required_adventures:
                raise GuildRequirementsUnmetError(
                    "adventures",
                    required_adventures,
                    total_adventures,
                    f"Guild needs at least {required_adventures} total completed "
                    f"adventures (Currently: {total_adventures})",
                )

            previous_class = guild.guild_class
            guild.guild_class = target_class

            self.log_operation(
                "promote_guild",
                guild_id=guild.id,
                previous_class=previous_class,
                new_class=target_class,
                member_count=len(members),
                total_adventures=total_adventures,
            )
            return target_class

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _member_players(self, session: AsyncSession, guild_id: int) -> list[Player]:
        result = await session.execute(
            select(Player)
            .join(GuildMember, GuildMember.player_id == Player.id)
            .where(GuildMember.guild_id == guild_id)
            .order_by(Player.id)
        )
        return list(result.scalars().all())

    async def _guild_view(self, session: AsyncSession, guild: Guild) -> Dict[str, Any]:
        members = await self._member_players(session, guild.id)
        return {
            "guild_id": guild.id,
            "name": guild.name,
            "guild_class": guild.guild_class,
            "leader_id": guild.leader_id,
            "members": [
                {
                    "player_id": member.id,
                    "user_id": member.user_id,
                    "rank_letter": member.rank_letter,
                    "rank_level": member.rank_level,
                    "completed_adventures": member.completed_adventures,
                }
                for member in members
            ],
        }
