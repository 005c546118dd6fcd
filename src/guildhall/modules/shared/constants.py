"""
Guildhall Domain Constants

Purpose
-------
Built-in defaults for game balance. Every value here is also published in
`config/*.yaml` and read through `ConfigManager`; these constants are what a
service falls back to when no YAML file defines the key.

IMPORTANT:
This module contains GAMEPLAY constants only. Infrastructure concerns
(database pools, logging) belong in `guildhall.core.config`.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- Grouped by game system
- Mapping values are shared; callers that mutate must copy
"""

from __future__ import annotations

from typing import Dict, Final, Mapping

# ============================================================================
# GATHERING
# ============================================================================

GATHER_DURATIONS_SECONDS: Final[Mapping[str, int]] = {
    "wood": 60,
    "mining": 300,
    "animal": 120,
    "plants": 30,
}

# Minimum skill level per material. Materials not listed cannot be gathered.
GATHER_UNLOCKS: Final[Mapping[str, Mapping[str, int]]] = {
    "wood": {"Common Wood": 1, "Stick": 1, "Oak Wood": 5, "Rosewood": 15},
    "mining": {
        "Stone": 1,
        "Flint": 1,
        "Coal": 1,
        "Copper Ore": 1,
        "Tin Ore": 1,
        "Iron Ore": 5,
        "Silver Ore": 15,
        "Gold Ore": 30,
    },
    "animal": {
        "Raw Meat": 1,
        "Raw Fish": 1,
        "Hide": 1,
        "Milk": 1,
        "Egg": 1,
        "Bone": 5,
        "Feather": 5,
        "Wool": 5,
    },
    "plants": {
        "Wheat": 1,
        "Corn": 1,
        "Carrot": 1,
        "Potato": 1,
        "Berry": 1,
        "Plant Matter": 1,
        "Fiber": 1,
        "Herbs": 5,
        "Cotton": 15,
        "Sugarcane": 15,
    },
}

GATHER_MIN_QUANTITY: Final[int] = 1
GATHER_MAX_QUANTITY: Final[int] = 3
GATHER_BASE_XP: Final[int] = 10
GATHER_XP_PER_LEVEL: Final[int] = 2

# ============================================================================
# CRAFTING
# ============================================================================

CRAFT_FAIL_XP_RATIO: Final[float] = 0.2
CRAFT_DOWNGRADE_CHANCE: Final[int] = 50  # second roll below this downgrades
MAX_SUCCESS_CHANCE: Final[int] = 100

# ============================================================================
# ADVENTURES
# ============================================================================

ADVENTURE_COOLDOWN_SECONDS: Final[int] = 300

ADVENTURE_TIERS: Final[Mapping[str, Mapping[str, int]]] = {
    "F": {"duration": 900, "food": 2, "water": 2, "medicine": 0, "xp": 50},
    "D": {"duration": 1800, "food": 5, "water": 5, "medicine": 1, "xp": 120},
    "C": {"duration": 3600, "food": 10, "water": 10, "medicine": 2, "xp": 300},
    "B": {"duration": 7200, "food": 25, "water": 25, "medicine": 5, "xp": 800},
    "A": {"duration": 14400, "food": 60, "water": 60, "medicine": 10, "xp": 2000},
    "S": {"duration": 36000, "food": 150, "water": 150, "medicine": 25, "xp": 6000},
}

WATER_ITEM_NAME: Final[str] = "Water Bottle"
UNKNOWN_MONSTER_NAME: Final[str] = "Unknown Threat"

# ============================================================================
# PROGRESSION
# ============================================================================

SKILL_XP_PER_LEVEL: Final[int] = 100  # threshold is level * this
RANK_XP_PER_LEVEL: Final[int] = 100
MAX_RANK_LEVEL: Final[int] = 100

# ============================================================================
# GUILDS
# ============================================================================

GUILD_START_CLASS: Final[int] = 12
GUILD_TOP_CLASS: Final[int] = 1
GUILD_ADVENTURES_PER_CLASS: Final[int] = 5
GUILD_NAME_MAX_LENGTH: Final[int] = 100

GUILD_CLASS_RANKS: Final[Dict[int, str]] = {
    12: "F",
    11: "F",
    10: "D",
    9: "D",
    8: "C",
    7: "C",
    6: "B",
    5: "B",
    4: "A",
    3: "A",
    2: "S",
    1: "S",
}

# ============================================================================
# SHOPS
# ============================================================================

SHOP_REFRESH_INTERVAL_SECONDS: Final[int] = 3600
SHOP_SELL_RATIO: Final[float] = 0.8
SHOP_RESTOCK_MIN_QUANTITY: Final[int] = 10
SHOP_RESTOCK_MAX_QUANTITY: Final[int] = 60  # exclusive
SHOP_PRICE_MIN_FACTOR: Final[float] = 0.8
SHOP_PRICE_MAX_FACTOR: Final[float] = 1.2
SHOP_INITIAL_QUANTITY: Final[int] = 50
SHOP_INITIAL_MARKUP: Final[float] = 1.2

# ============================================================================
# PLAYERS
# ============================================================================

MIN_PLAYER_LEVEL: Final[int] = 1
