"""Player identity resolution, self-healing and profile."""

from .service import PlayerService

__all__ = ["PlayerService"]
