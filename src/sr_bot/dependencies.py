"""Shared instances for the bot and its FastAPI surface.

The metrics handle is created once per process and handed to every pipeline
run; the FastAPI routes read it back through ``Depends(get_metrics)``.
"""

from typing import Optional

from .config.loader import load_config
from .config.settings import Settings
from .core.metrics import AudioMetrics
from .core.shutdown import ShutdownHandler
from .utils.logging import get_logger

logger = get_logger(__name__)


# Global singletons (initialized once)
_settings: Optional[Settings] = None
_metrics: Optional[AudioMetrics] = None
_shutdown_handler: Optional[ShutdownHandler] = None


def get_settings() -> Settings:
    """Get application settings (loaded once).

    Returns:
        Settings instance loaded from config.toml and the environment
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def set_settings(settings: Settings) -> None:
    global _settings
    _settings = settings


def get_metrics() -> AudioMetrics:
    """Get or create the metrics handle (singleton).

    Returns:
        AudioMetrics instance
    """
    global _metrics
    if _metrics is None:
        logger.info("Initializing audio metrics")
        _metrics = AudioMetrics()
    return _metrics


def get_shutdown_handler() -> ShutdownHandler:
    """Get or create the shutdown handler (singleton)."""
    global _shutdown_handler
    if _shutdown_handler is None:
        _shutdown_handler = ShutdownHandler()
    return _shutdown_handler


def reset() -> None:
    """Drop every singleton; used between tests."""
    global _settings, _metrics, _shutdown_handler
    _settings = None
    _metrics = None
    _shutdown_handler = None
