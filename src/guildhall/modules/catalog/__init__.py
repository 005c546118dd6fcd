"""Immutable reference data: items, recipes, monsters, templates."""

from .seed import load_catalog_data, seed_catalog
from .service import CatalogService

__all__ = ["CatalogService", "load_catalog_data", "seed_catalog"]
