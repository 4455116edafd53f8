"""Test configuration helpers."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from menu_bot.delivery.messages import OutboundMessage  # noqa: E402
from menu_bot.http_client import FetchResult  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register the asyncio marker for the lightweight runner below."""

    config.addinivalue_line("markers", "asyncio: execute the test inside an event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute ``@pytest.mark.asyncio`` tests without requiring pytest-asyncio."""

    marker = pyfuncitem.get_closest_marker("asyncio")
    if marker is None:
        return None

    func = pyfuncitem.obj
    if not asyncio.iscoroutinefunction(func):
        return None

    argnames = pyfuncitem._fixtureinfo.argnames
    kwargs = {name: pyfuncitem.funcargs[name] for name in argnames}
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(func(**kwargs))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeFetcher:
    """Stands in for :class:`RemoteFetcher`, answering from a path → payload map."""

    def __init__(self, responses: dict[str, Any] | None = None, *, delay: float = 0.0) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[str] = []
        self.delay = delay

    async def fetch(self, path: str) -> FetchResult:
        self.calls.append(path)
        if self.delay:
            await asyncio.sleep(self.delay)
        payload = self.responses.get(path)
        if payload is None:
            return FetchResult.failure(path, "HTTP 503", status_code=503, attempts=3)
        if isinstance(payload, Exception):
            raise payload
        return FetchResult.success(path, payload, status_code=200, attempts=1)


class RecordingChannel:
    """Collects sent messages; photos fail when their image is listed in ``failing_images``."""

    def __init__(self, *, failing_images: set[str] | None = None, fail_all: bool = False) -> None:
        self.sent: list[OutboundMessage] = []
        self.events: list[tuple[str, Any]] = []
        self.failing_images = set(failing_images or ())
        self.fail_all = fail_all

    async def send(self, message: OutboundMessage) -> bool:
        self.events.append(("send", message))
        if self.fail_all:
            return False
        if message.kind == "photo" and message.image in self.failing_images:
            return False
        self.sent.append(message)
        return True

    @property
    def bodies(self) -> list[str]:
        return [message.body for message in self.sent]


STORE_PATH = "/stores/public/slug/ysg"
CATEGORIES_PATH = "/categories/store/slug/ysg"
PRODUCTS_PATH = "/products/public-store/slug/ysg"

STORE_PAYLOAD = {
    "_id": "s1",
    "name": "YSG Store",
    "description": "Fresh food daily",
    "address": "1 Main St",
    "phone": "+1 555 0100",
}
CATEGORIES_PAYLOAD = [
    {"_id": "c1", "name": "Drinks"},
    {"_id": "c2", "name": "Pizza"},
]
PRODUCTS_PAYLOAD = [
    {"_id": "p1", "title": "Cola", "price": "$2", "category": {"_id": "c1", "name": "Drinks"}},
    {
        "_id": "p2",
        "title": "Margherita",
        "price": "$9",
        "description": "Tomato and mozzarella",
        "image": "https://img.example/p2.jpg",
        "category": {"_id": "c2", "name": "Pizza"},
    },
    {"_id": "p3", "title": "Lemonade", "category": "c1", "imageUrl": "https://img.example/p3.jpg"},
    {"_id": "p4", "title": "Bread"},
]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def full_responses() -> dict[str, Any]:
    return {
        STORE_PATH: STORE_PAYLOAD,
        CATEGORIES_PATH: CATEGORIES_PAYLOAD,
        PRODUCTS_PATH: PRODUCTS_PAYLOAD,
    }


@pytest.fixture
def fetcher(full_responses: dict[str, Any]) -> FakeFetcher:
    return FakeFetcher(full_responses)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()
