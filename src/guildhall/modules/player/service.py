"""
PlayerService - player identity resolution and self-healing
============================================================

Handles:
- Resolving an external identity (`user_id`) to a player row, creating it
  with starting defaults on first sight
- Lazily materializing skill tracks
- Locking a player row for a mutation
- Granting skill xp
- The profile view (player state plus skills)

Get-or-create runs inside the caller's transaction under a SAVEPOINT. When
two requests race to create the same row, the loser's savepoint is rolled
back on the unique-constraint violation and the winner's row is re-read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from guildhall.core.database.service import DatabaseService
from guildhall.database.models.enums import SkillType
from guildhall.database.models.player import Player, PlayerSkill
from guildhall.modules.progression.logic import SkillProgress, apply_skill_xp
from guildhall.modules.shared.base_repository import BaseRepository
from guildhall.modules.shared.base_service import BaseService
from guildhall.modules.shared.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from guildhall.core.clock import Clock
    from guildhall.core.config.manager import ConfigManager
    from guildhall.core.random_source import RandomSource


class PlayerService(BaseService):
    """
    Player aggregate access.

    Business Logic:
    - A new player starts with `players.starting_gold` gold (100), rank F1
      and no adventures
    - Every skill track starts at level 1 with 0 xp
    - Missing rows are created, never reported as errors
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock=clock, rng=rng)
        self._player_repo = BaseRepository[Player](Player, self.log)
        self._skill_repo = BaseRepository[PlayerSkill](PlayerSkill, self.log)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def resolve_player_id(self, user_id: str) -> int:
        """
        Map an external identity to a player id, creating the player and all
        skill tracks if needed.
        """
        user_id = self._validate_user_id(user_id)
        async with DatabaseService.get_transaction() as session:
            player = await self.get_or_create_player(session, user_id)
            await self.ensure_skills(session, player.id)
            return player.id

    async def get_profile(self, player_id: int) -> Dict[str, Any]:
        """
        Player state plus every skill track.

        Raises:
            NotFoundError: Unknown player id
        """
        async with DatabaseService.get_transaction() as session:
            player = await self._player_repo.get(session, player_id)
            if player is None:
                raise NotFoundError("Player", player_id)
            skills = await self.ensure_skills(session, player.id)

            return {
                "player_id": player.id,
                "user_id": player.user_id,
                "gold": player.gold,
                "level": player.level,
                "xp": player.xp,
                "rank_letter": player.rank_letter,
                "rank_level": player.rank_level,
                "adventure_xp": player.adventure_xp,
                "completed_adventures": player.completed_adventures,
                "last_adventure_claim": player.last_adventure_claim,
                "skills": {
                    skill.skill_type: {"level": skill.level, "xp": skill.xp}
                    for skill in skills
                },
            }

    # -------------------------------------------------------------------------
    # Session-level helpers
    # -------------------------------------------------------------------------

    async def get_or_create_player(self, session: AsyncSession, user_id: str) -> Player:
        existing = await self._player_repo.find_one_where(session, Player.user_id == user_id)
        if existing is not None:
            return existing

        starting_gold = int(self.get_config("players.starting_gold", 100))
        try:
            async with session.begin_nested():
                player = Player(user_id=user_id, gold=starting_gold)
                self._player_repo.add(session, player)
        except IntegrityError:
            player = await self._player_repo.find_one_where(session, Player.user_id == user_id)
            if player is None:
                raise
            return player

        self.log_operation("create_player", player_id=player.id, user_id=user_id)
        return player

    async def get_or_create_skill(
        self, session: AsyncSession, player_id: int, skill_type: str
    ) -> PlayerSkill:
        skill_type = SkillType(skill_type).value
        existing = await self._skill_repo.get(session, (player_id, skill_type))
        if existing is not None:
            return existing

        try:
            async with session.begin_nested():
                skill = PlayerSkill(player_id=player_id, skill_type=skill_type, level=1, xp=0)
                self._skill_repo.add(session, skill)
        except IntegrityError:
            skill = await self._skill_repo.get(session, (player_id, skill_type))
            if skill is None:
                raise
        return skill

    async def ensure_skills(self, session: AsyncSession, player_id: int) -> List[PlayerSkill]:
        """All six skill tracks of a player, creating missing ones."""
        return [
            await self.get_or_create_skill(session, player_id, skill_type.value)
            for skill_type in SkillType
        ]

    async def lock_player(self, session: AsyncSession, player_id: int) -> Player:
        """
        Raises:
            NotFoundError: Unknown player id
        """
        player = await self._player_repo.get_for_update(session, player_id)
        if player is None:
            raise NotFoundError("Player", player_id)
        return player

    async def grant_skill_xp(
        self, session: AsyncSession, player_id: int, skill_type: str, amount: int
    ) -> SkillProgress:
        skill = await self.get_or_create_skill(session, player_id, skill_type)
        progress = apply_skill_xp(skill.level, skill.xp, amount)
        skill.level = progress.level
        skill.xp = progress.xp

        if progress.leveled_up:
            self.log_operation(
                "skill_level_up",
                player_id=player_id,
                skill_type=skill.skill_type,
                new_level=progress.level,
            )
        return progress

    @staticmethod
    def _validate_user_id(user_id: Any) -> str:
        if user_id is None or not str(user_id).strip():
            raise ValidationError("user_id", "user_id is required")
        return str(user_id).strip()
