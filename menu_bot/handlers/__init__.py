"""Aiogram routers."""
