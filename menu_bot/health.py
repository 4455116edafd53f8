from __future__ import annotations

import datetime as dt
import logging
from html import escape

from aiohttp import web

from menu_bot.catalog.cache import CatalogCache
from menu_bot.config import settings

logger = logging.getLogger(__name__)

CACHE_KEY = web.AppKey("catalog_cache", CatalogCache)

_STATUS_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>{title} Telegram Bot</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 40px; text-align: center; }}
    .status {{ color: #22c55e; font-size: 24px; margin: 20px 0; }}
  </style>
</head>
<body>
  <h1>🍽️ {title} Telegram Bot</h1>
  <div class="status">✅ Bot is running</div>
  <p>Go to Telegram and send <code>/start</code> to test the bot.</p>
</body>
</html>
"""


async def index_handler(_: web.Request) -> web.Response:
    page = _STATUS_PAGE.format(title=escape(settings.STORE_TITLE))
    return web.Response(text=page, content_type="text/html")


async def health_handler(request: web.Request) -> web.Response:
    payload: dict[str, object] = {
        "status": "healthy",
        "platform": "python",
        "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
    }
    cache = request.app.get(CACHE_KEY)
    if cache is not None:
        snapshot = cache.snapshot()
        payload["cache"] = {
            "populated": snapshot.populated,
            "age_seconds": None if snapshot.age_seconds is None else round(snapshot.age_seconds, 1),
            "ttl_seconds": cache.ttl,
            "refreshing": snapshot.refreshing,
        }
    return web.json_response(payload)


async def ping_handler(_: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_service_app(cache: CatalogCache | None = None) -> web.Application:
    app = web.Application()
    if cache is not None:
        app[CACHE_KEY] = cache
    app.router.add_get("/", index_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/ping", ping_handler)
    return app


__all__ = ["CACHE_KEY", "create_service_app", "health_handler", "index_handler", "ping_handler"]
