"""
Guildhall logging: context-stamped records routed through a queue listener.
"""

from guildhall.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    "ContextFilter",
    "JSONFormatter",
]
