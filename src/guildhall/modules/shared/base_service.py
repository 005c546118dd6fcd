"""
Base Service Foundation

Purpose
-------
Provides the foundational class for all domain services in Guildhall.
Services implement pure business logic, open their own transactions through
`DatabaseService.get_transaction()`, enforce business rules and raise domain
exceptions.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access (balance values come from `ConfigManager`)
- The injected `Clock` and `RandomSource` every time- or chance-based rule
  reads from
- Validation error wrapping

What this class does NOT do:
- Manage database transactions (that's DatabaseService's job)
- Contain game-specific logic

Usage
-----
    class ShopService(BaseService):
        def __init__(self, config_manager, logger, clock=None, rng=None):
            super().__init__(config_manager, logger, clock=clock, rng=rng)
            self._shop_repo = BaseRepository[Shop](Shop, self.log)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from guildhall.core.clock import Clock, SystemClock
from guildhall.core.random_source import DefaultRandomSource, RandomSource

if TYPE_CHECKING:
    from logging import Logger

    from guildhall.core.config.manager import ConfigManager


class BaseService:
    """
    Base class for all domain services.

    Args:
        config_manager: Balance configuration (the `ConfigManager` class or a
            compatible object exposing `get(key, default)`)
        logger: Structured logger instance
        clock: Time source; defaults to the wall clock
        rng: Randomness source; defaults to an unseeded system source
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self._config = config_manager
        self.log = logger
        self.clock: Clock = clock or SystemClock()
        self.rng: RandomSource = rng or DefaultRandomSource()

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Safely retrieve configuration value.

        Args:
            key: Configuration key to retrieve
            default: Default value if key not found
            required: If True, raise exception if key missing

        Returns:
            Configuration value

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        from guildhall.core.exceptions import ConfigurationError

        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    def now_ms(self) -> int:
        return self.clock.now_ms()

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def validate_positive_int(self, value: int, name: str) -> None:
        """
        Validate that a value is a positive integer.

        Raises:
            ValidationError: If value is not positive
        """
        from .exceptions import ValidationError

        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(
                name, f"{name} must be a positive integer, got {value}"
            )
