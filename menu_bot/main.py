"""Application entry point."""

from __future__ import annotations

import asyncio
import errno
import importlib
import importlib.util
import logging
import time

from aiogram import Bot, Dispatcher, __version__ as aiogram_version
from aiogram.client.default import DefaultBotProperties
from aiohttp import web

from menu_bot.catalog.cache import CatalogCache
from menu_bot.config import settings
from menu_bot.delivery.pipeline import DeliveryPipeline
from menu_bot.handlers import menu as h_menu
from menu_bot.health import create_service_app
from menu_bot.http_client import RemoteFetcher, async_http_client
from menu_bot.logging_config import resolve_log_level, setup_logging
from menu_bot.navigation import NavigationController

ALLOWED_UPDATES = ["message"]

startup_log = logging.getLogger("startup")

_sentry_spec = importlib.util.find_spec("sentry_sdk")
if _sentry_spec is not None:
    sentry_sdk = importlib.import_module("sentry_sdk")
    from sentry_sdk.integrations.aiohttp import AioHttpIntegration  # type: ignore[attr-defined]
else:  # pragma: no cover - optional dependency
    sentry_sdk = None
    AioHttpIntegration = None  # type: ignore[assignment]


def _init_sentry() -> None:
    if sentry_sdk is None or AioHttpIntegration is None:
        startup_log.info("sentry disabled: library not installed")
        return

    dsn = settings.SENTRY_DSN
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        integrations=[AioHttpIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.ENVIRONMENT,
    )


def _dry_run_reason() -> str | None:
    bot_token = settings.BOT_TOKEN or ""
    token_prefix = bot_token.lower()
    if settings.DEV_DRY_RUN:
        return "DEV_DRY_RUN"
    if not bot_token:
        return "missing BOT_TOKEN"
    if token_prefix.startswith("dummy") or token_prefix.startswith("placeholder"):
        return "placeholder BOT_TOKEN"
    return None


def build_controller(fetcher: RemoteFetcher) -> NavigationController:
    cache = CatalogCache(fetcher)
    pipeline = DeliveryPipeline()
    return NavigationController(cache, pipeline)


def build_dispatcher(controller: NavigationController) -> Dispatcher:
    dp = Dispatcher()
    dp["controller"] = controller
    dp["chat_locks"] = h_menu.ChatLocks()
    dp.include_router(h_menu.router)
    return dp


async def _setup_service_app(app_web: web.Application) -> tuple[web.AppRunner, web.BaseSite]:
    runner = web.AppRunner(app_web)
    await runner.setup()
    host = settings.SERVICE_HOST
    port = settings.PORT

    try:
        site = web.TCPSite(runner, host=host, port=port)
        await site.start()
    except OSError as exc:
        errno_value = getattr(exc, "errno", None)
        if errno_value in (errno.EADDRINUSE, 10048) and port != 0:
            startup_log.warning("port %s busy, use ephemeral 0", port)
            site = web.TCPSite(runner, host=host, port=0)
            await site.start()
        else:
            await runner.cleanup()
            raise

    startup_log.info("service server at http://%s:%s", host, port)
    return runner, site


async def _cleanup_service_resources(
    runner: web.AppRunner | None,
    site: web.BaseSite | None,
) -> None:
    if site is not None:
        await site.stop()
    if runner is not None:
        await runner.cleanup()


async def _wait_forever() -> None:
    event = asyncio.Event()
    await event.wait()


async def main() -> None:
    _init_sentry()
    setup_logging(
        log_dir=settings.LOG_DIR,
        level=resolve_log_level(settings.LOG_LEVEL),
    )

    t0 = time.perf_counter()

    def mark(tag: str) -> None:
        startup_log.info("%s (%.1f ms)", tag, (time.perf_counter() - t0) * 1000)

    mark("S1: setup_logging done")
    startup_log.info(
        "store slug=%s api=%s cache_ttl=%ss delivery_delay=%ss",
        settings.STORE_SLUG,
        settings.API_BASE_URL,
        settings.CACHE_TTL_SECONDS,
        settings.DELIVERY_DELAY_SECONDS,
    )

    async with async_http_client() as client:
        controller = build_controller(RemoteFetcher(client))
        runner: web.AppRunner | None = None
        site: web.BaseSite | None = None

        dry_run_reason = _dry_run_reason()
        if dry_run_reason is not None:
            mark("S2: dev dry run mode active")
            try:
                runner, site = await _setup_service_app(create_service_app(controller.cache))
                startup_log.warning("telegram init skipped (%s)", dry_run_reason)
                await _wait_forever()
            finally:
                await _cleanup_service_resources(runner, site)
            return

        bot = Bot(
            token=settings.BOT_TOKEN,
            default=DefaultBotProperties(parse_mode="HTML"),
        )
        dp = build_dispatcher(controller)
        mark("S2: bot/dispatcher created")
        startup_log.info("aiogram=%s allowed_updates=%s", aiogram_version, ALLOWED_UPDATES)

        runner, site = await _setup_service_app(create_service_app(controller.cache))
        mark("S3: service server started")

        mark("S4: start_polling enter")
        try:
            await dp.start_polling(
                bot,
                allowed_updates=ALLOWED_UPDATES,
                polling_timeout=settings.POLLING_TIMEOUT,
            )
            mark("S5: start_polling exited normally")
        except Exception:
            startup_log.exception("E!: start_polling crashed")
            raise
        finally:
            mark("S6: shutdown sequence")
            await _cleanup_service_resources(runner, site)
            await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
