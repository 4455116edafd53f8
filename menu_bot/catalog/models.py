"""Catalog records parsed from the upstream store API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

UNTITLED = "Untitled"

_LIST_KEYS = ("data", "items", "results", "products", "categories")
_SOCIAL_KEYS = ("socialLinks", "social_links", "socials", "social")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _record_id(raw: Mapping[str, Any]) -> str:
    return _text(raw.get("_id")) or _text(raw.get("id"))


def unwrap_record(payload: Any) -> Mapping[str, Any] | None:
    """Return the object payload, unwrapping a ``{"data": {...}}`` envelope."""

    if not isinstance(payload, Mapping):
        return None
    inner = payload.get("data")
    if isinstance(inner, Mapping) and not payload.get("name"):
        return inner
    return payload


def unwrap_list(payload: Any) -> list[Any] | None:
    """Return the list payload, unwrapping common ``{"data": [...]}`` envelopes."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in _LIST_KEYS:
            items = payload.get(key)
            if isinstance(items, list):
                return items
    return None


@dataclass(frozen=True, slots=True)
class Store:
    id: str
    name: str
    description: str = ""
    address: str = ""
    phone: str = ""
    social_links: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "Store | None":
        raw = unwrap_record(payload)
        if raw is None:
            return None
        links: dict[str, str] = {}
        for key in _SOCIAL_KEYS:
            value = raw.get(key)
            if isinstance(value, Mapping):
                for network, url in value.items():
                    url_text = _text(url)
                    if url_text:
                        links[str(network)] = url_text
                break
        return cls(
            id=_record_id(raw),
            name=_text(raw.get("name")) or _text(raw.get("title")),
            description=_text(raw.get("description")),
            address=_text(raw.get("address")),
            phone=_text(raw.get("phone")),
            social_links=links,
        )


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str

    @classmethod
    def from_payload(cls, raw: Any) -> "Category | None":
        if not isinstance(raw, Mapping):
            return None
        return cls(id=_record_id(raw), name=_text(raw.get("name")))


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    title: str
    price: str = ""
    description: str = ""
    available: bool | None = None
    image: str | None = None
    category_id: str | None = None
    category_name: str | None = None

    @classmethod
    def from_payload(cls, raw: Any) -> "Product | None":
        if not isinstance(raw, Mapping):
            return None

        category = raw.get("category")
        category_id: str | None = None
        category_name: str | None = None
        if isinstance(category, Mapping):
            category_id = _record_id(category) or None
            category_name = _text(category.get("name")) or None
        else:
            category_id = _text(category) or None

        available = raw.get("isAvailable", raw.get("available"))
        image = _text(raw.get("image")) or _text(raw.get("imageUrl"))
        return cls(
            id=_record_id(raw),
            title=_text(raw.get("title")) or _text(raw.get("name")) or UNTITLED,
            price=_text(raw.get("price")),
            description=_text(raw.get("description")),
            available=available if isinstance(available, bool) else None,
            image=image or None,
            category_id=category_id,
            category_name=category_name,
        )


def parse_categories(payload: Any) -> list[Category] | None:
    items = unwrap_list(payload)
    if items is None:
        return None
    return [category for category in (Category.from_payload(item) for item in items) if category]


def parse_products(payload: Any) -> list[Product] | None:
    items = unwrap_list(payload)
    if items is None:
        return None
    return [product for product in (Product.from_payload(item) for item in items) if product]


@dataclass(frozen=True, slots=True)
class Catalog:
    """Store profile, categories and products from one refresh.

    ``categories`` may be ``None`` on its own; the catalog is only usable for
    browsing when both ``store`` and ``products`` are present.
    """

    store: Store | None
    categories: tuple[Category, ...] | None
    products: tuple[Product, ...] | None
    fetched_at: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.store is not None and self.products is not None

    @classmethod
    def build(
        cls,
        store: Store | None,
        categories: Iterable[Category] | None,
        products: Iterable[Product] | None,
        *,
        fetched_at: float = 0.0,
    ) -> "Catalog":
        return cls(
            store=store,
            categories=tuple(categories) if categories is not None else None,
            products=tuple(products) if products is not None else None,
            fetched_at=fetched_at,
        )


__all__ = [
    "UNTITLED",
    "Catalog",
    "Category",
    "Product",
    "Store",
    "parse_categories",
    "parse_products",
    "unwrap_list",
    "unwrap_record",
]
