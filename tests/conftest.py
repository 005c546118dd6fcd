"""
Pytest Configuration and Fixtures for Guildhall Tests
=====================================================

Purpose
-------
Centralized test fixtures and configuration for the Guildhall test suite.
Provides reusable fixtures for the database, the engine, deterministic time
and randomness, and inventory setup.

Responsibilities
----------------
- In-memory SQLite database per test (schema + seeded catalog)
- ConfigManager reset around every test
- Deterministic `FixedClock` and scripted randomness
- Engine factory and inventory/player helpers

Non-Responsibilities
--------------------
- Test implementation (delegated to test files)
- Business logic (delegated to services)
- Production configuration (test-specific only)

Architecture Notes
------------------
- Unit tests exercise pure functions and need no database
- Integration tests run the real services against `sqlite+aiosqlite:///:memory:`;
  each test gets a fresh engine, so there is nothing to clean up between tests
- Randomness is scripted per test: queued values are consumed first, then a
  seeded generator takes over
"""

from __future__ import annotations

import os
from collections import deque
from pathlib import Path
from typing import Any, AsyncGenerator, Deque, Dict, Optional, Sequence, TypeVar

import pytest
import pytest_asyncio
from sqlalchemy import select

from guildhall.core.clock import FixedClock
from guildhall.core.config.config import Config
from guildhall.core.config.manager import ConfigManager
from guildhall.core.database.service import DatabaseService
from guildhall.core.logging.logger import get_logger
from guildhall.core.random_source import DefaultRandomSource
from guildhall.database.models import Item, Player
from guildhall.engine import GameEngine
from guildhall.modules.catalog import seed_catalog

logger = get_logger(__name__)

T = TypeVar("T")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
START_MS = 1_700_000_000_000

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["LOG_LEVEL"] = "WARNING"
    os.environ["DATABASE_URL"] = TEST_DATABASE_URL
    # Config validated on import; pick up the test environment.
    Config.load()


# ============================================================================
# DETERMINISTIC TIME & RANDOMNESS
# ============================================================================


class ScriptedRandom:
    """
    `RandomSource` that replays queued draws before falling back to a seeded
    generator.

    `choice` is scripted by index into the sequence it is given.

    Usage:
        rng.queue_random(0.96, 0.10)   # craft roll 96, downgrade roll 10
        rng.queue_choice(1)            # pick the second candidate
    """

    def __init__(self, seed: int = 1234) -> None:
        self._fallback = DefaultRandomSource(seed)
        self._randoms: Deque[float] = deque()
        self._uniforms: Deque[float] = deque()
        self._randints: Deque[int] = deque()
        self._choices: Deque[int] = deque()

    def queue_random(self, *values: float) -> None:
        self._randoms.extend(values)

    def queue_uniform(self, *values: float) -> None:
        self._uniforms.extend(values)

    def queue_randint(self, *values: int) -> None:
        self._randints.extend(values)

    def queue_choice(self, *indexes: int) -> None:
        self._choices.extend(indexes)

    def random(self) -> float:
        if self._randoms:
            return self._randoms.popleft()
        return self._fallback.random()

    def uniform(self, a: float, b: float) -> float:
        if self._uniforms:
            return self._uniforms.popleft()
        return self._fallback.uniform(a, b)

    def randint(self, a: int, b: int) -> int:
        if self._randints:
            return self._randints.popleft()
        return self._fallback.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        if self._choices:
            return seq[self._choices.popleft()]
        return self._fallback.choice(seq)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START_MS)


@pytest.fixture
def rng() -> ScriptedRandom:
    return ScriptedRandom()


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def config_manager():
    """
    Fresh ConfigManager loaded from the repository's `config/` directory.

    Scope: function (overrides never leak between tests)
    """
    ConfigManager.reset()
    ConfigManager.initialize(config_dir=PROJECT_ROOT / "config")
    yield ConfigManager
    ConfigManager.reset()


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[type, None]:
    """
    Initialize DatabaseService against a fresh in-memory database with the
    schema created and the catalog seeded.

    Scope: function (new engine per test, clean slate)
    """
    await DatabaseService.shutdown()
    await DatabaseService.initialize(TEST_DATABASE_URL)
    await DatabaseService.create_all()
    async with DatabaseService.get_transaction() as session:
        await seed_catalog(session, now_ms=START_MS)

    yield DatabaseService

    await DatabaseService.shutdown()


@pytest.fixture
def engine(database, config_manager, clock, rng) -> GameEngine:
    """GameEngine wired to the test database, clock and scripted randomness."""
    return GameEngine(config_manager=config_manager, clock=clock, rng=rng)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


async def item_id(name: str) -> int:
    """Catalog id of an item by name."""
    async with DatabaseService.get_session() as session:
        result = await session.execute(select(Item.id).where(Item.name == name))
        return result.scalar_one()


async def recipe_id(engine: GameEngine, item_name: str) -> int:
    """Id of the recipe producing `item_name`."""
    for recipe in await engine.list_recipes():
        if recipe["item"]["name"] == item_name:
            return recipe["id"]
    raise LookupError(f"no recipe for {item_name}")


async def grant_items(engine: GameEngine, user_id: str, items: Dict[str, int]) -> int:
    """
    Put items into a player's inventory by name, creating the player.

    Returns:
        The player id
    """
    player_id = await engine.players.resolve_player_id(user_id)
    async with DatabaseService.get_transaction() as session:
        for name, quantity in items.items():
            item = await engine.catalog.get_item_by_name(session, name)
            assert item is not None, f"unknown item {name}"
            await engine.inventory.add_item(session, player_id, item.id, quantity)
    return player_id


async def held(engine: GameEngine, user_id: str) -> Dict[str, int]:
    """Inventory of a player as {item name: quantity}."""
    return {entry["name"]: entry["quantity"] for entry in await engine.get_inventory(user_id)}


async def update_player(engine: GameEngine, user_id: str, **fields: Any) -> int:
    """Set player columns directly (rank, adventures, cooldown stamps)."""
    player_id = await engine.players.resolve_player_id(user_id)
    async with DatabaseService.get_transaction() as session:
        player = await session.get(Player, player_id)
        for key, value in fields.items():
            setattr(player, key, value)
    return player_id


async def set_skill(
    engine: GameEngine, user_id: str, skill_type: str, level: int, xp: Optional[int] = None
) -> None:
    player_id = await engine.players.resolve_player_id(user_id)
    async with DatabaseService.get_transaction() as session:
        skill = await engine.players.get_or_create_skill(session, player_id, skill_type)
        skill.level = level
        if xp is not None:
            skill.xp = xp
