"""Chat handlers that route every message through the navigation controller."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator

from aiogram import Bot, Router
from aiogram.types import Message

from menu_bot.channel import TelegramChannel
from menu_bot.navigation import NavigationController, parse_user_action

router = Router(name="menu")
log = logging.getLogger("navigation")


class ChatLocks:
    """Serialize actions per chat while letting different chats run concurrently."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def hold(self, chat_id: int) -> AsyncIterator[None]:
        lock = self._locks[chat_id]
        if lock.locked():
            log.debug("chat %s busy; queueing action", chat_id)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


@router.message()
async def on_message(
    message: Message,
    bot: Bot,
    controller: NavigationController,
    chat_locks: ChatLocks,
) -> None:
    action = parse_user_action(message.text)
    log.info(
        "message chat=%s uid=%s action=%s",
        message.chat.id,
        getattr(message.from_user, "id", None),
        action.kind.value,
    )
    channel = TelegramChannel(bot, message.chat.id)
    async with chat_locks.hold(message.chat.id):
        await controller.handle(action, channel)


__all__ = ["ChatLocks", "router"]
