"""
Unit tests for reward resolution.

Crafting outcomes (success, downgrade, fail), gathering eligibility and
quantities, and adventure xp lookup. Catalog rows are built as transient
model instances; randomness is scripted.
"""

import pytest

from guildhall.database.models import CraftStatus, Item, Recipe
from guildhall.modules.rewards import (
    adventure_xp,
    downgrade_tier,
    eligible_materials,
    final_success_chance,
    gather_xp,
    is_downgrade_candidate,
    resolve_craft,
    resolve_gather,
)
from guildhall.modules.shared.constants import ADVENTURE_TIERS, GATHER_UNLOCKS
from tests.conftest import ScriptedRandom


def make_item(name, category="gear", tier="F", kind="product", price=10):
    return Item(name=name, kind=kind, category=category, tier=tier, base_price=price)


def make_recipe(item, success_rate=100, min_skill=1, xp=20):
    return Recipe(
        item=item,
        skill_type="crafting",
        duration_seconds=30,
        min_skill_level=min_skill,
        success_rate=success_rate,
        xp_reward=xp,
    )


TRAINING_SWORD = make_item("Training Sword")
WOODEN_SHIELD = make_item("Wooden Shield")
BRONZE_SWORD = make_item("Bronze Sword", tier="D", price=300)
COOKED_MEAT = make_item("Cooked Meat", category="food")

WOOD = [
    make_item("Common Wood", category="wood", kind="material"),
    make_item("Oak Wood", category="wood", tier="D", kind="material"),
    make_item("Rosewood", category="wood", tier="C", kind="material"),
    make_item("Stick", category="wood", kind="material"),
]


# ============================================================================
# CRAFTING
# ============================================================================


@pytest.mark.unit
class TestSuccessChance:
    """Base success rate plus the skill bonus."""

    def test_skill_bonus_added(self):
        """Each level above the minimum adds one point."""
        assert final_success_chance(90, 15, 10) == 95

    def test_no_bonus_below_minimum(self):
        """Below the minimum level the base rate stands."""
        assert final_success_chance(80, 3, 10) == 80

    def test_capped_at_100(self):
        """The chance never exceeds 100."""
        assert final_success_chance(50, 200, 95) == 100
        assert final_success_chance(100, 50, 1) == 100

    def test_never_negative(self):
        """A zero base rate stays at zero."""
        assert final_success_chance(0, 1, 1) == 0


@pytest.mark.unit
class TestDowngradeTier:
    """Tier lookup for downgraded products."""

    @pytest.mark.parametrize(
        "tier,expected", [("S", "A"), ("A", "B"), ("B", "C"), ("C", "D"), ("D", "F")]
    )
    def test_one_tier_lower(self, tier, expected):
        """Every tier but F has a lower neighbour."""
        assert downgrade_tier(tier).value == expected

    def test_f_has_no_lower_tier(self):
        """Tier F cannot be downgraded."""
        assert downgrade_tier("F") is None

    def test_candidate_requires_same_category_lower_tier_product(self):
        """Only lower-tier products of the same category qualify."""
        assert is_downgrade_candidate(TRAINING_SWORD, BRONZE_SWORD)
        assert not is_downgrade_candidate(COOKED_MEAT, BRONZE_SWORD)
        assert not is_downgrade_candidate(BRONZE_SWORD, BRONZE_SWORD)
        assert not is_downgrade_candidate(WOOD[0], BRONZE_SWORD)


@pytest.mark.unit
class TestResolveCraft:
    """Claim-time crafting rolls."""

    def test_guaranteed_recipe_always_succeeds(self):
        """Success rate 100 succeeds even on the highest possible roll."""
        rng = ScriptedRandom()
        rng.queue_random(0.999999)

        result = resolve_craft(make_recipe(TRAINING_SWORD), 1, [], rng)

        assert result.status is CraftStatus.SUCCESS
        assert result.item is TRAINING_SWORD
        assert result.xp_gained == 20

    def test_roll_equal_to_chance_succeeds(self):
        """A roll exactly at the chance still succeeds."""
        rng = ScriptedRandom()
        rng.queue_random(0.5)

        result = resolve_craft(make_recipe(WOODEN_SHIELD, 50, 1, 15), 1, [], rng)

        assert result.status is CraftStatus.SUCCESS
        assert result.final_chance == 50

    def test_failed_roll_downgrades_to_lower_tier_item(self):
        """Roll 96 against 90% then a downgrade roll under 50."""
        rng = ScriptedRandom()
        rng.queue_random(0.96, 0.10)
        rng.queue_choice(1)

        result = resolve_craft(
            make_recipe(BRONZE_SWORD, 90, 10, 80),
            10,
            [TRAINING_SWORD, WOODEN_SHIELD],
            rng,
        )

        assert result.status is CraftStatus.DOWNGRADE
        assert result.item is WOODEN_SHIELD
        assert result.xp_gained == 16

    def test_failed_roll_without_downgrade_fails(self):
        """A failed downgrade roll yields nothing and partial xp."""
        rng = ScriptedRandom()
        rng.queue_random(0.96, 0.75)

        result = resolve_craft(
            make_recipe(BRONZE_SWORD, 90, 10, 80),
            10,
            [TRAINING_SWORD, WOODEN_SHIELD],
            rng,
        )

        assert result.status is CraftStatus.FAIL
        assert result.item is None
        assert result.xp_gained == 16

    def test_tier_f_never_downgrades(self):
        """A tier F recipe has nothing to downgrade to."""
        rng = ScriptedRandom()
        rng.queue_random(0.99, 0.0)

        result = resolve_craft(make_recipe(WOODEN_SHIELD, 50, 1, 15), 1, [TRAINING_SWORD], rng)

        assert result.status is CraftStatus.FAIL
        assert result.item is None
        assert result.xp_gained == 3

    def test_downgrade_without_candidates_fails(self):
        """No eligible lower-tier product means a plain failure."""
        rng = ScriptedRandom()
        rng.queue_random(0.99, 0.0)

        result = resolve_craft(make_recipe(BRONZE_SWORD, 90, 10, 80), 10, [COOKED_MEAT], rng)

        assert result.status is CraftStatus.FAIL

    def test_skill_bonus_turns_failure_into_success(self):
        """The skill bonus can lift a roll into success."""
        rng = ScriptedRandom()
        rng.queue_random(0.94)

        result = resolve_craft(make_recipe(BRONZE_SWORD, 90, 10, 80), 15, [], rng)

        assert result.status is CraftStatus.SUCCESS
        assert result.final_chance == 95

    def test_custom_downgrade_chance_and_xp_ratio(self):
        """Balance overrides for downgrade chance and fail xp apply."""
        rng = ScriptedRandom()
        rng.queue_random(0.99, 0.10)

        result = resolve_craft(
            make_recipe(BRONZE_SWORD, 90, 10, 80),
            10,
            [TRAINING_SWORD],
            rng,
            fail_xp_ratio=0.5,
            downgrade_chance=0,
        )

        assert result.status is CraftStatus.FAIL
        assert result.xp_gained == 40


# ============================================================================
# GATHERING
# ============================================================================


@pytest.mark.unit
class TestGathering:
    """Material eligibility, quantity and xp for gathering."""

    @pytest.mark.parametrize(
        "level,expected",
        [
            (1, {"Common Wood", "Stick"}),
            (4, {"Common Wood", "Stick"}),
            (5, {"Common Wood", "Stick", "Oak Wood"}),
            (15, {"Common Wood", "Stick", "Oak Wood", "Rosewood"}),
        ],
    )
    def test_wood_unlocks(self, level, expected):
        """Wood materials unlock at their listed levels."""
        eligible = eligible_materials(WOOD, GATHER_UNLOCKS["wood"], level)

        assert {item.name for item in eligible} == expected

    def test_unlisted_material_is_never_eligible(self):
        """Materials missing from the unlock table are never gathered."""
        mystery = make_item("Mystery Bark", category="wood", kind="material")

        eligible = eligible_materials(WOOD + [mystery], GATHER_UNLOCKS["wood"], 99)

        assert mystery not in eligible

    def test_xp_formula(self):
        """Gathering xp is 10 plus twice the skill level."""
        assert gather_xp(1) == 12
        assert gather_xp(10) == 30

    def test_resolve_uses_choice_and_quantity(self):
        """The drawn item and quantity come from the random source."""
        rng = ScriptedRandom()
        rng.queue_choice(1)
        rng.queue_randint(3)

        result = resolve_gather(WOOD, GATHER_UNLOCKS["wood"], 1, rng)

        assert result.item.name == "Stick"
        assert result.quantity == 3
        assert result.xp_gained == 12

    def test_quantity_within_bounds(self):
        """Quantities stay between 1 and 3."""
        rng = ScriptedRandom(seed=7)
        for _ in range(50):
            result = resolve_gather(WOOD, GATHER_UNLOCKS["wood"], 20, rng)
            assert 1 <= result.quantity <= 3

    def test_empty_pool_returns_none(self):
        """Nothing eligible resolves to None."""
        result = resolve_gather(WOOD, {"Rosewood": 15}, 1, ScriptedRandom())

        assert result is None


@pytest.mark.unit
class TestAdventureXp:
    """Rank xp paid per adventure tier."""

    @pytest.mark.parametrize(
        "tier,xp", [("F", 50), ("D", 120), ("C", 300), ("B", 800), ("A", 2000), ("S", 6000)]
    )
    def test_xp_by_tier(self, tier, xp):
        """Each tier pays its configured xp."""
        assert adventure_xp(tier, ADVENTURE_TIERS) == xp
