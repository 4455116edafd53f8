"""In-memory catalog cache with a freshness window and single-flight refresh."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

from menu_bot.catalog.models import (
    Catalog,
    Store,
    parse_categories,
    parse_products,
)
from menu_bot.config import settings
from menu_bot.http_client import FetchResult, RemoteFetcher

log = logging.getLogger("catalog")

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class CatalogPaths:
    store: str
    categories: str
    products: str

    @classmethod
    def from_settings(cls) -> "CatalogPaths":
        return cls(
            store=settings.store_path,
            categories=settings.categories_path,
            products=settings.products_path,
        )


@dataclass(frozen=True, slots=True)
class CacheSnapshot:
    populated: bool
    age_seconds: float | None
    generation: int
    refreshing: bool


class CatalogCache:
    """Hold the last complete catalog and refresh it at most once per staleness period.

    A fresh entry is returned as the same object without touching the network.
    A stale or missing entry triggers one refresh shared by every concurrent
    caller of the same generation. Only a refresh that produced both the store
    and the products is written back; partial results are returned to callers
    but never cached.
    """

    def __init__(
        self,
        fetcher: RemoteFetcher,
        *,
        ttl: float | None = None,
        paths: CatalogPaths | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._ttl = settings.CACHE_TTL_SECONDS if ttl is None else ttl
        self._paths = paths or CatalogPaths.from_settings()
        self._clock = clock
        self._entry: Catalog | None = None
        self._fetched_at = 0.0
        self._generation = 0
        self._inflight: asyncio.Task[Catalog] | None = None
        self._inflight_generation = -1

    @property
    def ttl(self) -> float:
        return self._ttl

    def _fresh_entry(self) -> Catalog | None:
        entry = self._entry
        if entry is None or not entry.is_complete:
            return None
        if self._clock() - self._fetched_at >= self._ttl:
            return None
        return entry

    async def get_catalog(self) -> Catalog:
        entry = self._fresh_entry()
        if entry is not None:
            log.debug("using cached catalog age=%.1fs", self._clock() - self._fetched_at)
            return entry

        task = self._inflight
        if task is None or self._inflight_generation != self._generation:
            task = asyncio.create_task(self._refresh(self._generation))
            self._inflight = task
            self._inflight_generation = self._generation
            task.add_done_callback(self._clear_inflight)
        else:
            log.debug("joining in-flight catalog refresh generation=%s", self._generation)
        return await asyncio.shield(task)

    def _clear_inflight(self, task: asyncio.Task[Catalog]) -> None:
        if self._inflight is task:
            self._inflight = None
            self._inflight_generation = -1

    async def _refresh(self, generation: int) -> Catalog:
        log.info("fetching fresh catalog generation=%s", generation)
        store_result, categories_result, products_result = await asyncio.gather(
            self._fetcher.fetch(self._paths.store),
            self._fetch_best_effort(self._paths.categories),
            self._fetcher.fetch(self._paths.products),
        )

        store = _parse(store_result, Store.from_payload)
        categories = _parse(categories_result, parse_categories)
        products = _parse(products_result, parse_products)

        now = self._clock()
        catalog = Catalog.build(store, categories, products, fetched_at=now)
        if not catalog.is_complete:
            log.warning(
                "catalog refresh incomplete store=%s products=%s; cache left unchanged",
                store is not None,
                products is not None,
            )
            return catalog

        if generation != self._generation:
            log.info("catalog invalidated during refresh generation=%s; result not cached", generation)
            return catalog

        if categories is None:
            log.warning("categories unavailable; caching catalog without categories")
        self._entry = catalog
        self._fetched_at = now
        log.info(
            "catalog cached products=%s categories=%s",
            len(catalog.products or ()),
            "n/a" if catalog.categories is None else len(catalog.categories),
        )
        return catalog

    async def _fetch_best_effort(self, path: str) -> FetchResult | None:
        try:
            return await self._fetcher.fetch(path)
        except Exception:
            log.exception("best-effort fetch crashed path=%s", path)
            return None

    def invalidate(self) -> None:
        """Drop the cached entry so the next read always refetches."""

        self._entry = None
        self._fetched_at = 0.0
        self._generation += 1
        log.info("catalog cache invalidated generation=%s", self._generation)

    def age(self) -> float | None:
        if self._entry is None:
            return None
        return max(0.0, self._clock() - self._fetched_at)

    def snapshot(self) -> CacheSnapshot:
        return CacheSnapshot(
            populated=self._entry is not None,
            age_seconds=self.age(),
            generation=self._generation,
            refreshing=self._inflight is not None and not self._inflight.done(),
        )


def _parse(result: FetchResult | None, parser: Callable[[object], object]):
    if result is None or not result.ok:
        return None
    return parser(result.data)


__all__ = ["CacheSnapshot", "CatalogCache", "CatalogPaths"]
