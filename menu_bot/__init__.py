"""Telegram bot that browses a store menu served by a remote catalog API."""

__version__ = "1.0.0"
