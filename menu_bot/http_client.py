"""HTTP client utilities for the upstream store API with retry and backoff."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import httpx

from menu_bot.config import settings

log = logging.getLogger("fetch")

Sleep = Callable[[float], Awaitable[Any]]

RATE_LIMITED = 429


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a single logical fetch: either ``data`` or an ``error``."""

    path: str
    data: Any = None
    error: str | None = None
    status_code: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, path: str, data: Any, *, status_code: int, attempts: int) -> "FetchResult":
        return cls(path=path, data=data, status_code=status_code, attempts=attempts)

    @classmethod
    def failure(
        cls,
        path: str,
        error: str,
        *,
        status_code: int | None = None,
        attempts: int,
    ) -> "FetchResult":
        return cls(path=path, error=error, status_code=status_code, attempts=attempts)


def rate_limit_delay(attempt: int, *, base: float, maximum: float) -> float:
    """Exponential delay for a rate-limited ``attempt`` (1-based), capped at ``maximum``."""

    return min(base * (2 ** attempt), maximum)


@asynccontextmanager
async def async_http_client(
    *,
    base_url: str | httpx.URL | None = None,
    additional_options: Optional[dict[str, Any]] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Create an AsyncClient with configured timeout, user agent and proxy options."""

    options: dict[str, Any] = {
        "timeout": httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS),
        "headers": {"User-Agent": settings.HTTP_USER_AGENT},
        "base_url": base_url if base_url is not None else settings.API_BASE_URL,
    }
    if settings.HTTP_PROXY_URL:
        options["proxy"] = settings.HTTP_PROXY_URL
    if additional_options:
        options.update(additional_options)

    async with httpx.AsyncClient(**options) as client:
        yield client


class RemoteFetcher:
    """Fetch catalog resources relative to the API base URL.

    Every attempt shares one counter. A ``429`` response waits
    ``min(base * 2**attempt, max)`` seconds before the next attempt, any other
    failure waits a flat ``retry_delay``. Exhausting the budget yields a failed
    :class:`FetchResult` instead of raising.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        retries: int | None = None,
        retry_delay: float | None = None,
        backoff_base: float | None = None,
        backoff_max: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._retries = max(1, int(retries if retries is not None else settings.FETCH_RETRIES))
        self._retry_delay = settings.RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._backoff_base = (
            settings.RATE_LIMIT_BACKOFF_BASE if backoff_base is None else backoff_base
        )
        self._backoff_max = settings.RATE_LIMIT_BACKOFF_MAX if backoff_max is None else backoff_max
        self._sleep = sleep

    @property
    def retries(self) -> int:
        return self._retries

    async def fetch(self, path: str, *, retries: int | None = None) -> FetchResult:
        budget = max(1, int(retries)) if retries is not None else self._retries
        last_error = "not attempted"
        last_status: int | None = None

        for attempt in range(1, budget + 1):
            log.info("fetching attempt=%s/%s path=%s", attempt, budget, path)
            try:
                response = await self._client.get(path)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                last_status = exc.response.status_code
                last_error = f"HTTP {last_status}"
            except httpx.RequestError as exc:
                last_status = None
                last_error = f"{type(exc).__name__}: {exc}"
            except ValueError as exc:
                last_status = response.status_code
                last_error = f"invalid JSON: {exc}"
            else:
                log.info("fetched path=%s status=%s attempt=%s", path, response.status_code, attempt)
                return FetchResult.success(
                    path, data, status_code=response.status_code, attempts=attempt
                )

            log.warning("fetch failed path=%s attempt=%s error=%s", path, attempt, last_error)
            if attempt >= budget:
                break

            if last_status == RATE_LIMITED:
                delay = rate_limit_delay(attempt, base=self._backoff_base, maximum=self._backoff_max)
                log.info("rate limited path=%s, waiting %.1fs before retry", path, delay)
            else:
                delay = self._retry_delay
            if delay > 0:
                await self._sleep(delay)

        log.error("fetch gave up path=%s attempts=%s error=%s", path, budget, last_error)
        return FetchResult.failure(path, last_error, status_code=last_status, attempts=budget)


__all__ = [
    "FetchResult",
    "RemoteFetcher",
    "Sleep",
    "async_http_client",
    "rate_limit_delay",
]
