"""Sequential, paced delivery of product cards to a chat."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from menu_bot.catalog.models import Product
from menu_bot.config import settings
from menu_bot.delivery.messages import OutboundMessage, product_message, section_header
from menu_bot.http_client import Sleep

log = logging.getLogger("delivery")

NO_ITEMS_NOTICE = "📭 No items found"


class Channel(Protocol):
    async def send(self, message: OutboundMessage) -> bool:
        """Send one message and report whether it was accepted."""


@dataclass(slots=True)
class DeliveryReport:
    attempted: int = 0
    delivered: int = 0
    fallbacks: int = 0
    failed: int = 0


@dataclass(frozen=True, slots=True)
class _Job:
    message: OutboundMessage
    counted: bool = True


class DeliveryPipeline:
    """Send product cards one at a time with a fixed pause between sends.

    A photo that cannot be delivered is resent as text with the same caption.
    Failed sends are logged and counted; the remaining items are still sent.
    """

    def __init__(
        self,
        *,
        delay: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._delay = settings.DELIVERY_DELAY_SECONDS if delay is None else max(0.0, delay)
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    async def deliver(
        self,
        products: Sequence[Product],
        channel: Channel,
        *,
        empty_notice: str = NO_ITEMS_NOTICE,
    ) -> DeliveryReport:
        if not products:
            await self._send_notice(channel, empty_notice)
            return DeliveryReport()
        return await self._run([_Job(product_message(product)) for product in products], channel)

    async def deliver_grouped(
        self,
        groups: Mapping[str, Sequence[Product]],
        channel: Channel,
        *,
        empty_notice: str = NO_ITEMS_NOTICE,
    ) -> DeliveryReport:
        jobs: list[_Job] = []
        for name, products in groups.items():
            if not products:
                continue
            jobs.append(_Job(OutboundMessage.text(section_header(name)), counted=False))
            jobs.extend(_Job(product_message(product)) for product in products)
        if not jobs:
            await self._send_notice(channel, empty_notice)
            return DeliveryReport()
        return await self._run(jobs, channel)

    async def _run(self, jobs: Sequence[_Job], channel: Channel) -> DeliveryReport:
        report = DeliveryReport()
        last = len(jobs) - 1
        for index, job in enumerate(jobs):
            delivered, fell_back = await self._send_job(job.message, channel)
            if job.counted:
                report.attempted += 1
                if delivered:
                    report.delivered += 1
                else:
                    report.failed += 1
                if fell_back:
                    report.fallbacks += 1
            if index < last and self._delay > 0:
                await self._sleep(self._delay)

        log.info(
            "delivery finished attempted=%s delivered=%s fallbacks=%s failed=%s",
            report.attempted,
            report.delivered,
            report.fallbacks,
            report.failed,
        )
        return report

    async def _send_job(self, message: OutboundMessage, channel: Channel) -> tuple[bool, bool]:
        if await _safe_send(channel, message):
            return True, False
        if message.kind != "photo":
            log.warning("text send failed; skipping item")
            return False, False

        log.info("photo send failed image=%s; falling back to text", message.image)
        if await _safe_send(channel, message.as_text()):
            return True, True
        log.warning("text fallback failed; skipping item")
        return False, True

    async def _send_notice(self, channel: Channel, text: str) -> None:
        if not await _safe_send(channel, OutboundMessage.text(text)):
            log.warning("empty-list notice could not be sent")


async def _safe_send(channel: Channel, message: OutboundMessage) -> bool:
    try:
        return bool(await channel.send(message))
    except Exception:  # noqa: BLE001 - a failed item must not stop the sequence
        log.exception("channel send raised kind=%s", message.kind)
        return False


__all__ = ["Channel", "DeliveryPipeline", "DeliveryReport", "NO_ITEMS_NOTICE"]
