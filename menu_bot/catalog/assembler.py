"""Derive the product list for a navigation selection."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from menu_bot.catalog.models import Category, Product

log = logging.getLogger("catalog")

UNCATEGORIZED = "Uncategorized"


def find_category(categories: Iterable[Category] | None, name: str) -> Category | None:
    if not categories:
        return None
    for category in categories:
        if category.name == name:
            return category
    return None


def select_category(
    products: Sequence[Product],
    categories: Iterable[Category] | None,
    category_name: str,
) -> list[Product]:
    """Return products of the category named ``category_name``.

    Matching is by display name. When nothing matches (unknown or renamed
    category, categories unavailable, or an empty category) the full product
    list is returned so the user is never shown an empty menu.
    """

    category = find_category(categories, category_name)
    if category is None:
        log.info("category %r not matched; showing all %s products", category_name, len(products))
        return list(products)

    selected = [product for product in products if product.category_id == category.id]
    if not selected:
        log.info("category %r has no products; showing all %s products", category_name, len(products))
        return list(products)
    return selected


def group_by_category(
    products: Iterable[Product],
    categories: Iterable[Category] | None = None,
) -> dict[str, list[Product]]:
    """Bucket products by category name in first-seen order."""

    names = {category.id: category.name for category in categories or () if category.id}
    groups: dict[str, list[Product]] = {}
    for product in products:
        name = None
        if product.category_id:
            name = names.get(product.category_id) or product.category_name
        groups.setdefault(name or UNCATEGORIZED, []).append(product)
    return groups


__all__ = ["UNCATEGORIZED", "find_category", "group_by_category", "select_category"]
