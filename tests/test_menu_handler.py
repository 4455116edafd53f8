from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from menu_bot.channel import TelegramChannel
from menu_bot.handlers.menu import ChatLocks, on_message
from menu_bot.navigation import ActionKind


class DummyMessage:
    def __init__(self, text: str | None, chat_id: int = 1) -> None:
        self.text = text
        self.chat = SimpleNamespace(id=chat_id)
        self.from_user = SimpleNamespace(id=chat_id)


class SlowController:
    def __init__(self) -> None:
        self.log: list[tuple[str, int, ActionKind]] = []

    async def handle(self, action, channel: TelegramChannel) -> None:  # noqa: ANN001
        self.log.append(("start", channel.chat_id, action.kind))
        await asyncio.sleep(0.01)
        self.log.append(("end", channel.chat_id, action.kind))


@pytest.mark.asyncio
async def test_message_is_parsed_and_routed_to_controller() -> None:
    controller = SlowController()

    await on_message(DummyMessage("🍽️ All Items"), object(), controller, ChatLocks())  # type: ignore[arg-type]

    assert controller.log == [("start", 1, ActionKind.ALL_ITEMS), ("end", 1, ActionKind.ALL_ITEMS)]


@pytest.mark.asyncio
async def test_actions_in_one_chat_run_one_at_a_time() -> None:
    controller = SlowController()
    locks = ChatLocks()

    await asyncio.gather(
        on_message(DummyMessage("/start"), object(), controller, locks),  # type: ignore[arg-type]
        on_message(DummyMessage("🔄 Refresh"), object(), controller, locks),  # type: ignore[arg-type]
    )

    assert [entry[0] for entry in controller.log] == ["start", "end", "start", "end"]


@pytest.mark.asyncio
async def test_different_chats_run_concurrently() -> None:
    controller = SlowController()
    locks = ChatLocks()

    await asyncio.gather(
        on_message(DummyMessage("/start", chat_id=1), object(), controller, locks),  # type: ignore[arg-type]
        on_message(DummyMessage("/start", chat_id=2), object(), controller, locks),  # type: ignore[arg-type]
    )

    assert [entry[0] for entry in controller.log] == ["start", "start", "end", "end"]
    assert len(locks) == 2
