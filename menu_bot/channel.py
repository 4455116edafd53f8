from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramRetryAfter
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

from menu_bot.delivery.messages import Keyboard, OutboundMessage

logger = logging.getLogger(__name__)


def build_reply_keyboard(rows: Keyboard) -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=label) for label in row] for row in rows],
        resize_keyboard=True,
    )


class TelegramChannel:
    """Deliver :class:`OutboundMessage` values to one Telegram chat."""

    def __init__(self, bot: Bot, chat_id: int, *, retry_after_limit: float = 30.0) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._retry_after_limit = retry_after_limit

    @property
    def chat_id(self) -> int:
        return self._chat_id

    async def send(self, message: OutboundMessage) -> bool:
        try:
            await self._send_with_retry_after(message)
        except TelegramAPIError as exc:
            logger.warning(
                "telegram send failed chat=%s kind=%s: %s",
                self._chat_id,
                message.kind,
                exc,
            )
            return False
        return True

    async def _send_with_retry_after(self, message: OutboundMessage) -> Any:
        try:
            return await self._dispatch(message)
        except TelegramRetryAfter as exc:
            if exc.retry_after > self._retry_after_limit:
                raise
            logger.info("flood control chat=%s, retrying in %ss", self._chat_id, exc.retry_after)
            await asyncio.sleep(exc.retry_after)
            return await self._dispatch(message)

    async def _dispatch(self, message: OutboundMessage) -> Any:
        markup = build_reply_keyboard(message.keyboard) if message.keyboard else None
        if message.kind == "photo" and message.image:
            return await self._bot.send_photo(
                self._chat_id,
                message.image,
                caption=message.caption,
                reply_markup=markup,
            )
        return await self._bot.send_message(
            self._chat_id,
            message.body,
            reply_markup=markup,
        )


__all__ = ["TelegramChannel", "build_reply_keyboard"]
