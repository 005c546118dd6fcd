"""
Integration tests for guild creation, lookup and class promotion.
"""

import pytest
from sqlalchemy import update

from guildhall.core.database.service import DatabaseService
from guildhall.database.models import Guild, GuildMember
from guildhall.modules.shared import (
    AlreadyInGuildError,
    GuildMaxClassError,
    GuildNameTakenError,
    GuildRequirementsUnmetError,
    NotFoundError,
    NotGuildLeaderError,
    ValidationError,
)
from tests.conftest import update_player

LEADER = "leader-1"
MEMBER = "member-1"


async def add_member(engine, guild_id: int, user_id: str, **fields) -> int:
    player_id = await update_player(engine, user_id, **fields)
    async with DatabaseService.get_transaction() as session:
        session.add(GuildMember(guild_id=guild_id, player_id=player_id))
    return player_id


async def set_class(guild_id: int, guild_class: int) -> None:
    async with DatabaseService.get_transaction() as session:
        await session.execute(
            update(Guild).where(Guild.id == guild_id).values(guild_class=guild_class)
        )


# ============================================================================
# CREATE / VIEW
# ============================================================================


@pytest.mark.integration
class TestCreateGuild:
    """Creating a guild and viewing it."""

    async def test_creator_leads_class_12_guild(self, engine):
        """The creator leads a new class 12 guild under the trimmed name."""
        guild_id = await engine.create_guild(LEADER, "  Dawnbreakers ")

        view = await engine.get_guild(LEADER)
        profile = await engine.get_profile(LEADER)
        assert view["guild_id"] == guild_id
        assert view["name"] == "Dawnbreakers"
        assert view["guild_class"] == 12
        assert view["leader_id"] == profile["player_id"]
        assert [m["user_id"] for m in view["members"]] == [LEADER]

    async def test_unaffiliated_player_has_no_guild(self, engine):
        """A player outside any guild sees None."""
        assert await engine.get_guild(MEMBER) is None

    @pytest.mark.parametrize("name", ["", "   ", None, "x" * 101])
    async def test_invalid_name(self, engine, name):
        """Blank, missing or overlong names are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            await engine.create_guild(LEADER, name)

        assert exc_info.value.field == "name"

    async def test_name_at_limit_accepted(self, engine):
        """A 100 character name is accepted."""
        await engine.create_guild(LEADER, "x" * 100)

    async def test_one_guild_per_player(self, engine):
        """A guild member cannot found a second guild."""
        await engine.create_guild(LEADER, "Dawnbreakers")

        with pytest.raises(AlreadyInGuildError):
            await engine.create_guild(LEADER, "Duskwalkers")

    async def test_name_taken(self, engine):
        """A duplicate name is rejected without side effects."""
        await engine.create_guild(LEADER, "Dawnbreakers")

        with pytest.raises(GuildNameTakenError):
            await engine.create_guild(MEMBER, "Dawnbreakers")

        assert await engine.get_guild(MEMBER) is None

    async def test_view_lists_members(self, engine):
        """The view lists members in join order with their adventure counts."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await add_member(engine, guild_id, MEMBER, completed_adventures=3)

        view = await engine.get_guild(MEMBER)

        assert view["guild_id"] == guild_id
        assert [m["user_id"] for m in view["members"]] == [LEADER, MEMBER]
        assert view["members"][1]["completed_adventures"] == 3


# ============================================================================
# PROMOTION
# ============================================================================


@pytest.mark.integration
class TestPromoteGuild:
    """Class promotion gated on member rank and summed adventures."""

    async def test_first_promotion_needs_five_adventures(self, engine):
        """12 to 11 needs five adventures."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")

        with pytest.raises(GuildRequirementsUnmetError) as exc_info:
            await engine.promote_guild(guild_id, LEADER)

        assert exc_info.value.requirement == "adventures"
        assert exc_info.value.required == 5
        assert exc_info.value.current == 0
        assert (await engine.get_guild(LEADER))["guild_class"] == 12

    async def test_first_promotion(self, engine):
        """Meeting the requirement moves the guild to class 11."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await update_player(engine, LEADER, completed_adventures=5)

        new_class = await engine.promote_guild(guild_id, LEADER)

        assert new_class == 11
        assert (await engine.get_guild(LEADER))["guild_class"] == 11

    async def test_adventures_summed_across_members(self, engine):
        """Adventures from all members count toward the requirement."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await update_player(engine, LEADER, completed_adventures=2)
        await add_member(engine, guild_id, MEMBER, completed_adventures=3)

        assert await engine.promote_guild(guild_id, LEADER) == 11

    async def test_rank_of_target_class_required(self, engine):
        """Members need the rank held by the target class."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await set_class(guild_id, 11)
        await update_player(engine, LEADER, completed_adventures=10)

        with pytest.raises(GuildRequirementsUnmetError) as exc_info:
            await engine.promote_guild(guild_id, LEADER)

        assert exc_info.value.requirement == "rank"
        assert exc_info.value.required == "D"
        assert exc_info.value.current == "F"

    async def test_every_member_must_meet_rank(self, engine):
        """One under-ranked member blocks promotion."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await set_class(guild_id, 11)
        await update_player(engine, LEADER, rank_letter="C", completed_adventures=10)
        await add_member(engine, guild_id, MEMBER, rank_letter="F")

        with pytest.raises(GuildRequirementsUnmetError) as exc_info:
            await engine.promote_guild(guild_id, LEADER)

        assert exc_info.value.current == "F"

        await update_player(engine, MEMBER, rank_letter="D")
        assert await engine.promote_guild(guild_id, LEADER) == 10

    async def test_rank_checked_before_adventures(self, engine):
        """The rank requirement is reported first."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await set_class(guild_id, 11)

        with pytest.raises(GuildRequirementsUnmetError) as exc_info:
            await engine.promote_guild(guild_id, LEADER)

        assert exc_info.value.requirement == "rank"

    async def test_promotion_to_top_class(self, engine):
        """Class 1 is reachable and cannot be exceeded."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await set_class(guild_id, 2)
        await update_player(engine, LEADER, rank_letter="S", completed_adventures=55)

        assert await engine.promote_guild(guild_id, LEADER) == 1

        with pytest.raises(GuildMaxClassError):
            await engine.promote_guild(guild_id, LEADER)

    async def test_only_leader_may_promote(self, engine):
        """Members other than the leader are refused."""
        guild_id = await engine.create_guild(LEADER, "Dawnbreakers")
        await update_player(engine, LEADER, completed_adventures=5)
        await add_member(engine, guild_id, MEMBER)

        with pytest.raises(NotGuildLeaderError):
            await engine.promote_guild(guild_id, MEMBER)

        assert (await engine.get_guild(LEADER))["guild_class"] == 12

    async def test_unknown_guild(self, engine):
        """An unknown guild id is NotFound."""
        with pytest.raises(NotFoundError):
            await engine.promote_guild(99_999, LEADER)
