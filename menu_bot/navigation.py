"""Map user navigation actions onto the catalog cache and delivery pipeline."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from html import escape

from menu_bot.catalog.assembler import group_by_category, select_category
from menu_bot.catalog.cache import CatalogCache
from menu_bot.catalog.models import Catalog
from menu_bot.config import settings
from menu_bot.delivery.messages import Keyboard, OutboundMessage, keyboard_rows, store_card
from menu_bot.delivery.pipeline import Channel, DeliveryPipeline, DeliveryReport

log = logging.getLogger("navigation")

CATEGORY_PREFIX = "📂 "
ALL_ITEMS_LABEL = "🍽️ All Items"
REFRESH_LABEL = "🔄 Refresh"

_VARIATION_SELECTOR = "\ufe0f"


class ActionKind(str, enum.Enum):
    START = "start"
    SELECT_CATEGORY = "select_category"
    ALL_ITEMS = "all_items"
    REFRESH = "refresh"
    HELP = "help"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class UserAction:
    kind: ActionKind
    category: str = ""
    text: str = ""


def _plain(text: str) -> str:
    return text.replace(_VARIATION_SELECTOR, "").strip()


def _command(text: str) -> str | None:
    if not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0][1:]
    return head.split("@", 1)[0].lower()


def parse_user_action(text: str | None) -> UserAction:
    """Normalize an inbound chat text into a :class:`UserAction`."""

    raw = (text or "").strip()
    command = _command(raw)
    if command in ("start", "menu"):
        return UserAction(ActionKind.START, text=raw)
    if command == "help":
        return UserAction(ActionKind.HELP, text=raw)
    if command == "refresh":
        return UserAction(ActionKind.REFRESH, text=raw)

    plain = _plain(raw)
    if plain == _plain(ALL_ITEMS_LABEL):
        return UserAction(ActionKind.ALL_ITEMS, text=raw)
    if plain == _plain(REFRESH_LABEL):
        return UserAction(ActionKind.REFRESH, text=raw)
    prefix = _plain(CATEGORY_PREFIX)
    if raw.startswith(prefix):
        # Only the label marker is normalized; emoji inside the name stay intact.
        name = raw[len(prefix):].lstrip(_VARIATION_SELECTOR).strip()
        if name:
            return UserAction(ActionKind.SELECT_CATEGORY, category=name, text=raw)
    return UserAction(ActionKind.UNKNOWN, text=raw)


def menu_keyboard(catalog: Catalog) -> Keyboard:
    rows = [
        [f"{CATEGORY_PREFIX}{category.name}"]
        for category in catalog.categories or ()
        if category.name
    ]
    rows.append([ALL_ITEMS_LABEL])
    rows.append([REFRESH_LABEL])
    return keyboard_rows(rows)


def help_text(cache_ttl: float) -> str:
    return (
        "🤖 <b>Menu Bot Help</b>\n\n"
        "<b>Commands:</b>\n"
        "/start - Show store menu\n"
        "/help - Show this help\n\n"
        "<b>Tips:</b>\n"
        "• Use buttons to navigate\n"
        "• Images load automatically\n"
        "• Refresh if menu seems old\n\n"
        f"The bot caches data for {_format_duration(cache_ttl)} to avoid API limits."
    )


def _format_duration(seconds: float) -> str:
    seconds = int(seconds)
    if seconds and seconds % 60 == 0:
        minutes = seconds // 60
        return "1 minute" if minutes == 1 else f"{minutes} minutes"
    return "1 second" if seconds == 1 else f"{seconds} seconds"


STORE_UNAVAILABLE = (
    "❌ Store is temporarily unavailable.\n\n"
    "This might be due to high traffic. Please try again in a few moments."
)
MENU_UNAVAILABLE = "❌ Menu temporarily unavailable. Please try again in a few moments."
MENU_ERROR = "❌ Unable to load menu at the moment.\n\nPlease try again in a few minutes."
UNKNOWN_INPUT = "🤔 I didn't get that. Use the menu buttons or send /start to browse the menu."
NO_CATEGORIES_TEXT = (
    "📋 <b>Menu Categories</b>\n\n"
    f"{ALL_ITEMS_LABEL}\n\n"
    "Select \"All Items\" to browse the menu."
)


class NavigationController:
    """Run one navigation action to completion against a chat channel."""

    def __init__(
        self,
        cache: CatalogCache,
        pipeline: DeliveryPipeline,
        *,
        store_title: str | None = None,
    ) -> None:
        self._cache = cache
        self._pipeline = pipeline
        self._store_title = store_title or settings.STORE_TITLE

    @property
    def cache(self) -> CatalogCache:
        return self._cache

    async def handle(self, action: UserAction, channel: Channel) -> DeliveryReport | None:
        log.info("action kind=%s category=%r", action.kind.value, action.category)
        try:
            if action.kind is ActionKind.START:
                await self.show_menu(channel)
            elif action.kind is ActionKind.SELECT_CATEGORY:
                return await self.show_category(action.category, channel)
            elif action.kind is ActionKind.ALL_ITEMS:
                return await self.show_all_items(channel)
            elif action.kind is ActionKind.REFRESH:
                await self.refresh(channel)
            elif action.kind is ActionKind.HELP:
                await channel.send(OutboundMessage.text(help_text(self._cache.ttl)))
            else:
                await channel.send(OutboundMessage.text(UNKNOWN_INPUT))
        except Exception:
            log.exception("action %s failed", action.kind.value)
            await channel.send(OutboundMessage.text(MENU_ERROR))
        return None

    async def show_menu(self, channel: Channel) -> None:
        await channel.send(OutboundMessage.text(f"🔄 Loading {escape(self._store_title)} menu..."))
        catalog = await self._cache.get_catalog()
        if catalog.store is None:
            await channel.send(OutboundMessage.text(STORE_UNAVAILABLE))
            return

        await channel.send(OutboundMessage.text(store_card(catalog.store, self._store_title)))
        if catalog.categories:
            await channel.send(
                OutboundMessage.text("📋 <b>Select a category:</b>", keyboard=menu_keyboard(catalog))
            )
        else:
            await channel.send(
                OutboundMessage.text(NO_CATEGORIES_TEXT, keyboard=menu_keyboard(catalog))
            )

    async def show_category(self, name: str, channel: Channel) -> DeliveryReport | None:
        await channel.send(OutboundMessage.text(f"🔄 Loading {escape(name)}..."))
        catalog = await self._cache.get_catalog()
        if not catalog.is_complete:
            await channel.send(OutboundMessage.text(MENU_UNAVAILABLE))
            return None

        products = select_category(catalog.products or (), catalog.categories, name)
        if products:
            await channel.send(
                OutboundMessage.text(f"📂 <b>{escape(name)}</b>\n<i>{len(products)} items</i>")
            )
        return await self._pipeline.deliver(
            products,
            channel,
            empty_notice=f"📭 No items found in {escape(name)}",
        )

    async def show_all_items(self, channel: Channel) -> DeliveryReport | None:
        await channel.send(OutboundMessage.text("🔄 Loading all menu items..."))
        catalog = await self._cache.get_catalog()
        if not catalog.is_complete:
            await channel.send(OutboundMessage.text(MENU_UNAVAILABLE))
            return None

        products = catalog.products or ()
        if products:
            await channel.send(
                OutboundMessage.text(f"🍽️ <b>All Menu Items</b>\n<i>{len(products)} items total</i>")
            )
        return await self._pipeline.deliver_grouped(
            group_by_category(products, catalog.categories),
            channel,
        )

    async def refresh(self, channel: Channel) -> None:
        self._cache.invalidate()
        await self.show_menu(channel)


__all__ = [
    "ALL_ITEMS_LABEL",
    "CATEGORY_PREFIX",
    "REFRESH_LABEL",
    "ActionKind",
    "NavigationController",
    "UserAction",
    "help_text",
    "menu_keyboard",
    "parse_user_action",
]
