"""Telegram dispatch."""
