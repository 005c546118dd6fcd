"""
Integration Tests for DatabaseService
=====================================

Purpose
-------
Test database operations against an in-memory SQLite database.
Verifies session and transaction management, schema creation, seeding and
constraint enforcement.

Test Coverage
-------------
- Connection and health check
- Transaction commit and rollback
- Schema creation and catalog seeding
- Constraint violations
- Use after shutdown

Testing Strategy
----------------
- Integration tests (real aiosqlite engine; pytest-mock only to simulate an
  unreachable database)
- Each test gets a fresh database from the `database` fixture
"""

import pytest
from sqlalchemy import func, inspect, select, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine

from guildhall.core.database.service import DatabaseService
from guildhall.core.exceptions import DatabaseNotInitializedError
from guildhall.database.models import InventoryEntry, Item, Player
from guildhall.modules.catalog.seed import seed_catalog
from tests.conftest import START_MS


# ============================================================================
# DATABASE CONNECTION TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseConnection:
    """Test database connection and basic operations."""

    async def test_database_connection(self, database):
        """A session can run a trivial query."""
        async with DatabaseService.get_session() as session:
            result = await session.execute(text("SELECT 1 as value"))
            row = result.fetchone()

        assert row is not None
        assert row.value == 1

    async def test_health_check(self, database):
        """The health check passes on a live database."""
        assert DatabaseService.is_initialized()
        assert await DatabaseService.health_check() is True

    async def test_database_schema_created(self, database):
        """Every model table exists after create_all."""
        async with DatabaseService.get_session() as session:
            connection = await session.connection()
            tables = await connection.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )

        for table in (
            "players",
            "player_skills",
            "items",
            "recipes",
            "recipe_ingredients",
            "inventory",
            "active_tasks",
            "guilds",
            "guild_members",
            "shops",
            "shop_stock",
        ):
            assert table in tables


# ============================================================================
# TRANSACTION TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseTransactions:
    """Test transaction management and isolation."""

    async def test_transaction_commit(self, database):
        """Rows added in a transaction are visible afterwards."""
        before = DatabaseService.get_stats()

        async with DatabaseService.get_transaction() as session:
            session.add(Player(user_id="commit-user", gold=100))

        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(Player.gold).where(Player.user_id == "commit-user")
            )
            assert result.scalar_one() == 100

        after = DatabaseService.get_stats()
        assert after["transactions_committed"] == before["transactions_committed"] + 1

    async def test_transaction_rollback_on_exception(self, database):
        """An exception inside the block rolls everything back."""
        before = DatabaseService.get_stats()

        with pytest.raises(RuntimeError):
            async with DatabaseService.get_transaction() as session:
                session.add(Player(user_id="rollback-user", gold=100))
                await session.flush()
                raise RuntimeError("abort")

        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(Player).where(Player.user_id == "rollback-user")
            )
            assert result.scalar_one_or_none() is None

        after = DatabaseService.get_stats()
        assert after["transactions_rolled_back"] == before["transactions_rolled_back"] + 1


# ============================================================================
# SEEDING TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestCatalogSeed:
    """Seeding the static catalog."""

    async def test_catalog_seeded(self, database):
        """Items exist after seeding."""
        async with DatabaseService.get_session() as session:
            count = (await session.execute(select(func.count()).select_from(Item))).scalar_one()

        assert count > 0

    async def test_second_seed_is_a_no_op(self, database):
        """Seeding twice inserts nothing new."""
        async with DatabaseService.get_session() as session:
            before = (await session.execute(select(func.count()).select_from(Item))).scalar_one()

        async with DatabaseService.get_transaction() as session:
            counts = await seed_catalog(session, now_ms=START_MS)

        assert set(counts.values()) == {0}
        async with DatabaseService.get_session() as session:
            after = (await session.execute(select(func.count()).select_from(Item))).scalar_one()
        assert after == before


# ============================================================================
# ERROR HANDLING TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseErrorHandling:
    """Test database error handling."""

    async def test_unique_constraint_violation(self, database):
        """Duplicate user ids violate the unique constraint."""
        with pytest.raises(IntegrityError):
            async with DatabaseService.get_transaction() as session:
                session.add(Player(user_id="dup-user", gold=100))
                await session.flush()
                session.add(Player(user_id="dup-user", gold=100))
                await session.flush()

    async def test_negative_inventory_rejected(self, database):
        """The check constraint refuses negative quantities."""
        async with DatabaseService.get_transaction() as session:
            player = Player(user_id="neg-user", gold=100)
            session.add(player)
            await session.flush()
            player_id = player.id

        with pytest.raises(IntegrityError):
            async with DatabaseService.get_transaction() as session:
                session.add(InventoryEntry(player_id=player_id, item_id=1, quantity=-1))

    async def test_foreign_keys_enforced(self, database):
        """SQLite enforces foreign keys."""
        with pytest.raises(IntegrityError):
            async with DatabaseService.get_transaction() as session:
                session.add(InventoryEntry(player_id=99_999, item_id=1, quantity=1))

    async def test_health_check_reports_unreachable(self, database, mocker):
        """A connection failure makes the health check return False."""
        mocker.patch.object(
            AsyncEngine,
            "connect",
            side_effect=OperationalError("SELECT 1", {}, ConnectionError("down")),
        )

        assert await DatabaseService.health_check() is False

    async def test_use_after_shutdown(self, database):
        """Sessions are refused once the service is shut down."""
        await DatabaseService.shutdown()

        assert not DatabaseService.is_initialized()
        assert await DatabaseService.health_check() is False
        with pytest.raises(DatabaseNotInitializedError):
            async with DatabaseService.get_session():
                pass
