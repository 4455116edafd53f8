"""Outbound message delivery."""

from .messages import OutboundMessage, product_caption, product_message
from .pipeline import Channel, DeliveryPipeline, DeliveryReport

__all__ = [
    "Channel",
    "DeliveryPipeline",
    "DeliveryReport",
    "OutboundMessage",
    "product_caption",
    "product_message",
]
