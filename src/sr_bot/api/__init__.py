"""
HTTP surface of the bot.

Exposes the Prometheus metrics endpoint and the health probes served
next to the Telegram polling loop.
"""

from . import health, metrics

__all__ = ["health", "metrics"]
