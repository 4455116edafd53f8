from __future__ import annotations

import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramRetryAfter
from aiogram.methods import SendMessage, SendPhoto
from aiogram.types import ReplyKeyboardMarkup

from menu_bot.channel import TelegramChannel, build_reply_keyboard
from menu_bot.delivery.messages import OutboundMessage


class DummyBot:
    def __init__(self, *, photo_error: Exception | None = None) -> None:
        self.photo_error = photo_error
        self.photos: list[tuple[int, str, dict]] = []
        self.texts: list[tuple[int, str, dict]] = []

    async def send_photo(self, chat_id: int, photo: str, **kwargs) -> None:  # noqa: ANN003
        if self.photo_error is not None:
            error, self.photo_error = self.photo_error, None
            raise error
        self.photos.append((chat_id, photo, kwargs))

    async def send_message(self, chat_id: int, text: str, **kwargs) -> None:  # noqa: ANN003
        self.texts.append((chat_id, text, kwargs))


def test_build_reply_keyboard() -> None:
    markup = build_reply_keyboard((("📂 Drinks",), ("🔄 Refresh",)))

    assert isinstance(markup, ReplyKeyboardMarkup)
    assert markup.resize_keyboard is True
    assert [[button.text for button in row] for row in markup.keyboard] == [["📂 Drinks"], ["🔄 Refresh"]]


@pytest.mark.asyncio
async def test_send_text_with_keyboard() -> None:
    bot = DummyBot()
    channel = TelegramChannel(bot, 42)  # type: ignore[arg-type]

    ok = await channel.send(OutboundMessage.text("hello", keyboard=(("A",),)))

    assert ok is True
    chat_id, text, kwargs = bot.texts[0]
    assert (chat_id, text) == (42, "hello")
    assert isinstance(kwargs["reply_markup"], ReplyKeyboardMarkup)


@pytest.mark.asyncio
async def test_send_photo_uses_caption() -> None:
    bot = DummyBot()
    channel = TelegramChannel(bot, 42)  # type: ignore[arg-type]

    ok = await channel.send(OutboundMessage.photo("https://img.example/a.jpg", "caption"))

    assert ok is True
    assert bot.photos == [(42, "https://img.example/a.jpg", {"caption": "caption", "reply_markup": None})]


@pytest.mark.asyncio
async def test_telegram_error_is_reported_as_failure() -> None:
    method = SendPhoto(chat_id=42, photo="https://img.example/broken.jpg")
    bot = DummyBot(photo_error=TelegramBadRequest(method=method, message="wrong file identifier"))
    channel = TelegramChannel(bot, 42)  # type: ignore[arg-type]

    ok = await channel.send(OutboundMessage.photo("https://img.example/broken.jpg", "caption"))

    assert ok is False
    assert bot.photos == []


@pytest.mark.asyncio
async def test_flood_control_waits_and_retries_once(monkeypatch) -> None:
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr("menu_bot.channel.asyncio.sleep", fake_sleep)
    method = SendMessage(chat_id=42, text="x")
    bot = DummyBot(photo_error=TelegramRetryAfter(method=method, message="Too Many Requests", retry_after=3))
    channel = TelegramChannel(bot, 42)  # type: ignore[arg-type]

    ok = await channel.send(OutboundMessage.photo("https://img.example/a.jpg", "caption"))

    assert ok is True
    assert sleeps == [3]
    assert len(bot.photos) == 1


@pytest.mark.asyncio
async def test_long_flood_control_gives_up() -> None:
    method = SendMessage(chat_id=42, text="x")
    bot = DummyBot(photo_error=TelegramRetryAfter(method=method, message="Too Many Requests", retry_after=120))
    channel = TelegramChannel(bot, 42, retry_after_limit=30)  # type: ignore[arg-type]

    ok = await channel.send(OutboundMessage.photo("https://img.example/a.jpg", "caption"))

    assert ok is False
