"""
ConfigManager: dot-notation access to tunable game balance for Guildhall.

Purpose
-------
- Provide hierarchical, dot-notation access to balance values
  (durations, adventure tier costs, unlock tables, shop pricing).
- Back configuration with YAML defaults from the `config/` directory.
- Allow in-process overrides for live tuning and tests.

Responsibilities
----------------
- Load and deep-merge every YAML file under the configured directory.
- Serve reads from an in-memory cache; overrides shadow YAML values.
- Track simple read metrics (hits, misses, fallbacks).

Non-Responsibilities
--------------------
- Static process settings such as database URLs (see `Config`).
- Knowing what any balance key means. Callers pass their own defaults, so a
  missing YAML file degrades to the built-in values of each service.

Key Design Decisions
--------------------
- YAML is the single source for **defaults**; overrides live only in memory.
- Class-level singleton, matching `Config` and `DatabaseService`.
- Initialization is lazy: the first `get()` loads YAML if `initialize()`
  was never called.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional

import yaml

from guildhall.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


# ============================================================================
# Exceptions
# ============================================================================


class ConfigManagerError(RuntimeError):
    """Base error type for ConfigManager-related failures."""


class ConfigInitializationError(ConfigManagerError):
    """Raised when a YAML file exists but cannot be parsed."""


__all__ = ["ConfigManager", "ConfigManagerError", "ConfigInitializationError"]


# ============================================================================
# ConfigManager
# ============================================================================


class ConfigManager:
    """
    Balance configuration with YAML defaults and in-memory overrides.

    Examples
    --------
    >>> ConfigManager.initialize()
    >>> ConfigManager.get("tasks.adventure.cooldown_seconds", 300)
    300
    >>> ConfigManager.set_override("tasks.gathering.durations.wood", 5)
    """

    _defaults: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None

    _metrics: Dict[str, int] = {
        "gets": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "override_hits": 0,
    }

    # =========================================================================
    # YAML LOADING & DEFAULTS
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> None:
        """
        Load all YAML config files from `config_dir` into `_defaults`.

        Files are merged in sorted path order so later files win on conflicts.
        A missing directory is not an error; services fall back to built-in
        defaults.
        """
        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        yaml_files = sorted(
            list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml"))
        )
        if not yaml_files:
            logger.info(
                "No YAML config files discovered; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        loaded_count = 0
        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                logger.error(
                    "Failed to parse YAML config",
                    extra={
                        "file": str(yaml_file),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                raise ConfigInitializationError(
                    f"Invalid YAML in config file {yaml_file}"
                ) from exc

            if isinstance(data, dict):
                cls._deep_merge_dict(cls._defaults, data)
                loaded_count += 1
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )

        logger.info(
            "YAML configs loaded",
            extra={
                "yaml_file_count": loaded_count,
                "top_level_keys": sorted(cls._defaults.keys()),
            },
        )

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load YAML defaults (idempotent unless `config_dir` changes).

        Parameters
        ----------
        config_dir:
            Directory to scan for YAML files. Defaults to `Config.CONFIG_DIR`.
        """
        from guildhall.core.config.config import Config

        target = Path(config_dir) if config_dir is not None else Config.CONFIG_DIR
        if cls._initialized and cls._config_dir == target:
            return

        cls._defaults = {}
        cls._load_yaml_configs(target)
        cls._config_dir = target
        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Drop loaded defaults, overrides and metrics."""
        cls._defaults = {}
        cls._overrides = {}
        cls._initialized = False
        cls._config_dir = None
        for key in cls._metrics:
            cls._metrics[key] = 0

    # =========================================================================
    # READS
    # =========================================================================

    @staticmethod
    def _lookup(tree: Dict[str, Any], key: str) -> Any:
        value: Any = tree
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return _MISSING
            value = value[part]
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Overrides are consulted first, both for the exact key and for any
        parent key holding a dict that contains it.

        Examples
        --------
        >>> ConfigManager.get("tasks.gathering.durations.wood", 60)
        60
        """
        if not cls._initialized:
            cls.initialize()

        cls._metrics["gets"] += 1

        override = cls._lookup(cls._overrides, key)
        value = cls._lookup(cls._defaults, key)

        if override is _MISSING and value is _MISSING:
            cls._metrics["cache_misses"] += 1
            return default

        if override is _MISSING:
            cls._metrics["cache_hits"] += 1
            return copy.deepcopy(value)

        cls._metrics["override_hits"] += 1
        if isinstance(override, dict) and isinstance(value, dict):
            # Nested overrides shadow individual leaves of a YAML subtree.
            merged = copy.deepcopy(value)
            cls._deep_merge_dict(merged, override)
            return merged
        return copy.deepcopy(override)

    # =========================================================================
    # OVERRIDES
    # =========================================================================

    @classmethod
    def set_override(cls, key: str, value: Any) -> None:
        """Shadow a configuration value in memory until cleared."""
        parts = key.split(".")
        node = cls._overrides
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

        logger.info(
            "Config override set",
            extra={"config_key": key, "new_value": value},
        )

    @classmethod
    def clear_overrides(cls) -> None:
        cls._overrides = {}
        logger.debug("Config overrides cleared")

    # =========================================================================
    # METRICS
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        gets = cls._metrics["gets"]
        hits = cls._metrics["cache_hits"] + cls._metrics["override_hits"]
        return {
            **cls._metrics,
            "hit_rate": round(hits / gets * 100, 2) if gets else 0.0,
            "initialized": cls._initialized,
            "config_dir": str(cls._config_dir) if cls._config_dir else None,
        }
