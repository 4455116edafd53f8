"""Catalog helpers."""

from .assembler import UNCATEGORIZED, group_by_category, select_category
from .cache import CatalogCache, CatalogPaths
from .models import Catalog, Category, Product, Store

__all__ = [
    "UNCATEGORIZED",
    "Catalog",
    "CatalogCache",
    "CatalogPaths",
    "Category",
    "Product",
    "Store",
    "group_by_category",
    "select_category",
]
