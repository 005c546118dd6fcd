"""
Error base classes for Guildhall.

`GuildhallError` is the root of every exception the package raises on purpose.
It carries a stable `error_code` and a `details` dict so callers outside the
engine can turn any failure into a response without parsing messages.

Infrastructure failures (bad configuration, database not ready) are defined
here; player-facing domain errors live in `guildhall.modules.shared.exceptions`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GuildhallError(Exception):
    """
    Root exception.

    Args:
        message: Human-readable description
        details: Structured context for logs and responses
        error_code: Stable identifier; defaults to the class name
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.error_code}] {self.message}"
        return f"[{self.error_code}] {self.message} {self.details}"


class InfrastructureError(GuildhallError):
    """Something is wrong with the deployment rather than with a request."""


class ConfigurationError(InfrastructureError):
    """A configuration source (YAML file, catalog, settings key) is missing or malformed."""

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key},
            error_code="CONFIG_ERROR",
        )


class DatabaseInitializationError(InfrastructureError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="DATABASE_INIT_FAILED")


class DatabaseNotInitializedError(InfrastructureError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="DATABASE_NOT_INITIALIZED")
