"""Per-player item holdings."""

from .service import InventoryService

__all__ = ["InventoryService"]
