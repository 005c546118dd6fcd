"""NPC shops and their stock refresh."""

from .service import ShopService

__all__ = ["ShopService"]
