"""Catalog — read-only projections of the ledger and their Rich rendering."""

from tokenmarket.catalog.projection import CatalogItem, CatalogProjection, CatalogSummary
from tokenmarket.catalog.renderer import CatalogRenderer

__all__ = ["CatalogItem", "CatalogProjection", "CatalogSummary", "CatalogRenderer"]
