"""
Process settings for Guildhall, read once from the environment (and `.env`).

Balance numbers live in the YAML files under `config/` and are served by
`ConfigManager`. This module covers what stays fixed for the life of the
process: where the database is, how large its pool may grow, how to log.

Variables
---------
DATABASE_URL                   async SQLAlchemy URL (default: ./guildhall.db through aiosqlite)
DATABASE_POOL_SIZE             1..200, default 10
DATABASE_MAX_OVERFLOW          0..200, default 10
DATABASE_POOL_RECYCLE          seconds, >= 60, default 1800
DATABASE_POOL_TIMEOUT          seconds, >= 1, default 30
DATABASE_STATEMENT_TIMEOUT_MS  PostgreSQL only, >= 100, default 30000
DATABASE_ECHO                  echo SQL, default off
ENVIRONMENT                    development / testing / staging / production
LOG_LEVEL                      DEBUG..CRITICAL, default INFO
LOG_JSON                       JSON log lines; unset means "only in production"
CONFIG_DIR                     balance YAML directory, default <project>/config

A value that fails to parse or falls outside its range is logged and replaced
by the default; `get_config_summary()` lists which keys were rejected.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Environment(Enum):
    """Deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, raw: str) -> "Environment":
        return cls(raw.strip().lower())


def parse_bool(raw: str) -> bool:
    """
    >>> parse_bool("Yes"), parse_bool("0")
    (True, False)
    """
    normalized = raw.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _in_range(low: int, high: Optional[int] = None) -> Callable[[int], bool]:
    return lambda value: value >= low and (high is None or value <= high)


class Config:
    """
    Static settings as class attributes.

    >>> if Config.is_production():
    ...     logger.info("Running against %s", Config.DATABASE_URL)
    """

    PROJECT_ROOT = Path(__file__).resolve().parents[4]

    DATABASE_URL: str = "sqlite+aiosqlite:///guildhall.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 1800
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30_000
    DATABASE_ECHO: bool = False

    ENVIRONMENT: str = Environment.DEVELOPMENT.value
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None

    CONFIG_DIR: Path = PROJECT_ROOT / "config"

    _from_env: Dict[str, bool] = {}
    _rejected: Dict[str, str] = {}

    @classmethod
    def _read(
        cls,
        key: str,
        default: Any,
        parse: Callable[[str], Any] = str,
        accept: Optional[Callable[[Any], bool]] = None,
    ) -> Any:
        raw = os.getenv(key)
        if raw is None:
            cls._from_env[key] = False
            return default

        try:
            value = parse(raw)
        except ValueError as exc:
            return cls._reject(key, raw, default, str(exc))
        if accept is not None and not accept(value):
            return cls._reject(key, raw, default, "out of range")

        cls._from_env[key] = True
        return value

    @classmethod
    def _reject(cls, key: str, raw: str, default: Any, reason: str) -> Any:
        # Runs before the structured logger is configured.
        logging.warning("Ignoring %s=%r (%s); using %r", key, raw, reason, default)
        cls._from_env[key] = False
        cls._rejected[key] = reason
        return default

    @classmethod
    def load(cls) -> None:
        """(Re)read every variable. Tests call this after changing the environment."""
        cls._from_env = {}
        cls._rejected = {}

        cls.DATABASE_URL = cls._read(
            "DATABASE_URL", "sqlite+aiosqlite:///guildhall.db", accept=bool
        )
        cls.DATABASE_POOL_SIZE = cls._read("DATABASE_POOL_SIZE", 10, int, _in_range(1, 200))
        cls.DATABASE_MAX_OVERFLOW = cls._read(
            "DATABASE_MAX_OVERFLOW", 10, int, _in_range(0, 200)
        )
        cls.DATABASE_POOL_RECYCLE = cls._read("DATABASE_POOL_RECYCLE", 1800, int, _in_range(60))
        cls.DATABASE_POOL_TIMEOUT = cls._read("DATABASE_POOL_TIMEOUT", 30, int, _in_range(1))
        cls.DATABASE_STATEMENT_TIMEOUT_MS = cls._read(
            "DATABASE_STATEMENT_TIMEOUT_MS", 30_000, int, _in_range(100)
        )
        cls.DATABASE_ECHO = cls._read("DATABASE_ECHO", False, parse_bool)

        cls.ENVIRONMENT = cls._read(
            "ENVIRONMENT", Environment.DEVELOPMENT, Environment.parse
        ).value
        cls.LOG_LEVEL = cls._read("LOG_LEVEL", "INFO", str.upper, _LOG_LEVELS.__contains__)
        cls.LOG_JSON = cls._read("LOG_JSON", None, parse_bool)

        cls.CONFIG_DIR = cls._read(
            "CONFIG_DIR",
            cls.PROJECT_ROOT / "config",
            lambda raw: Path(raw).expanduser().resolve(),
        )

    @classmethod
    def validate(cls) -> None:
        """
        Load and check settings that must hold before startup.

        Raises
        ------
        ValueError
            In production, when DATABASE_URL still points at SQLite.
        """
        cls.load()
        if cls.is_production() and cls.DATABASE_URL.startswith("sqlite"):
            raise ValueError("DATABASE_URL must point at a server database in production")

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Non-secret view of the loaded settings for the startup log line."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "database_scheme": cls.DATABASE_URL.split(":", 1)[0],
            "database_pool_size": cls.DATABASE_POOL_SIZE,
            "config_dir": str(cls.CONFIG_DIR),
            "from_environment": sorted(key for key, hit in cls._from_env.items() if hit),
            "rejected": sorted(cls._rejected),
        }


Config.validate()
