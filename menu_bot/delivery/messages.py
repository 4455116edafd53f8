"""Outbound chat messages and the texts rendered into them."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Literal, Sequence

from menu_bot.catalog.models import Product, Store

Keyboard = tuple[tuple[str, ...], ...]

AVAILABLE_MARK = "✅"
UNAVAILABLE_MARK = "❌"


@dataclass(frozen=True, slots=True)
class OutboundMessage:
    kind: Literal["text", "photo"]
    body: str = ""
    image: str | None = None
    keyboard: Keyboard | None = None

    @property
    def caption(self) -> str:
        return self.body

    @classmethod
    def text(cls, body: str, *, keyboard: Keyboard | None = None) -> "OutboundMessage":
        return cls(kind="text", body=body, keyboard=keyboard)

    @classmethod
    def photo(cls, image: str, caption: str) -> "OutboundMessage":
        return cls(kind="photo", body=caption, image=image)

    def as_text(self) -> "OutboundMessage":
        """Same content without the attachment."""

        return OutboundMessage(kind="text", body=self.body, keyboard=self.keyboard)


def keyboard_rows(rows: Sequence[Sequence[str]]) -> Keyboard:
    return tuple(tuple(row) for row in rows)


def product_caption(product: Product) -> str:
    marker = UNAVAILABLE_MARK if product.available is False else AVAILABLE_MARK
    price = f" - {escape(product.price)}" if product.price else ""
    return f"{marker} <b>{escape(product.title)}</b>{price}\n{escape(product.description)}"


def product_message(product: Product) -> OutboundMessage:
    caption = product_caption(product)
    if product.image:
        return OutboundMessage.photo(product.image, caption)
    return OutboundMessage.text(caption)


def store_card(store: Store, fallback_name: str = "") -> str:
    lines = [f"🏪 <b>{escape(store.name or fallback_name)}</b>", ""]
    if store.description:
        lines.append(f"📝 {escape(store.description)}")
    if store.address:
        lines.append(f"📍 {escape(store.address)}")
    if store.phone:
        lines.append(f"📞 {escape(store.phone)}")
    for network, url in store.social_links.items():
        lines.append(f"🔗 <a href=\"{escape(url, quote=True)}\">{escape(network.title())}</a>")
    return "\n".join(lines).strip()


def section_header(name: str) -> str:
    return f"📂 <b>{escape(name)}</b>"


__all__ = [
    "AVAILABLE_MARK",
    "UNAVAILABLE_MARK",
    "Keyboard",
    "OutboundMessage",
    "keyboard_rows",
    "product_caption",
    "product_message",
    "section_header",
    "store_card",
]
