"""Telegram bot relaying voice messages to a speech recognition service."""

__version__ = "0.1.0"
