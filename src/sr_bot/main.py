"""Main application entry point for the Telegram speech recognition bot."""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from telegram.ext import Application

from . import __version__
from .api import health, metrics
from .bot.handlers import AudioMessageDispatcher, build_audio_handler
from .config.loader import load_config
from .config.settings import DEFAULT_TRANSCRIPTION_ENDPOINT, Settings
from .core.tracing import get_tracer, init_tracing, shutdown_tracing
from .dependencies import get_metrics, get_shutdown_handler, set_settings
from .integrations.telegram_client import TelegramChatClient
from .integrations.transcription_client import TranscriptionClient
from .pipeline.relay import AudioRelayPipeline
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI app serving metrics and health.

    Args:
        settings: Settings to expose; loaded from config when omitted

    Returns:
        Configured FastAPI application
    """
    if settings is not None:
        set_settings(settings)
    else:
        settings = load_config()
        set_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(metrics.router, tags=["monitoring"])

    return app


def build_application(
    settings: Settings,
    http_client: TranscriptionClient,
    tracer,
) -> Application:
    """Build the Telegram application with the audio handler attached."""
    application = (
        Application.builder()
        .token(settings.telegram.token)
        .concurrent_updates(True)
        .build()
    )

    pipeline = AudioRelayPipeline(
        chat_client=TelegramChatClient(application.bot),
        metrics=get_metrics(),
        http_client=http_client,
        tracer=tracer,
        temp_dir=settings.transcription.temp_dir,
        max_audio_bytes=settings.transcription.max_audio_bytes,
    )
    dispatcher = AudioMessageDispatcher(
        pipeline=pipeline,
        endpoint=settings.transcription.endpoint,
        shutdown_handler=get_shutdown_handler(),
        tracer=tracer,
    )
    application.add_handler(build_audio_handler(dispatcher))
    return application


async def run_bot(settings: Settings) -> None:
    """Run Telegram polling and the metrics server until a shutdown signal."""
    provider = init_tracing(settings.telemetry)
    tracer = get_tracer(provider)
    shutdown_handler = get_shutdown_handler()
    http_client = TranscriptionClient(timeout=settings.transcription.request_timeout)

    application = build_application(settings, http_client, tracer)
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(settings),
            host=settings.metrics.host,
            port=settings.metrics.port,
            log_config=None  # We handle logging ourselves
        )
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_handler.trigger_shutdown)

    try:
        async with application:
            await application.start()
            await application.updater.start_polling(timeout=settings.telegram.poll_timeout)
            logger.info(f"Authorized on account {application.bot.username}")

            server_task = asyncio.create_task(server.serve())
            stop_task = asyncio.create_task(shutdown_handler.wait_for_shutdown())
            await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

            logger.info("Shutting down Telegram SR bot")
            server.should_exit = True
            stop_task.cancel()
            await asyncio.gather(server_task, stop_task, return_exceptions=True)

            await application.updater.stop()
            await application.stop()
    finally:
        await shutdown_handler.cleanup()
        await http_client.close()
        shutdown_tracing(provider)


def main(config_path: Optional[Path] = None):
    """Main entry point for running the bot."""
    settings = load_config(config_path)
    setup_logging(settings)
    set_settings(settings)

    if not settings.telegram.token:
        logger.critical("TELEGRAM_BOT_TOKEN environment variable is not set")
        sys.exit(1)

    if settings.transcription.endpoint == DEFAULT_TRANSCRIPTION_ENDPOINT:
        logger.warning(
            "API_ENDPOINT environment variable is not set, "
            f"using default value: \"{DEFAULT_TRANSCRIPTION_ENDPOINT}\""
        )
    logger.debug(f"Endpoint is {settings.transcription.endpoint}")

    asyncio.run(run_bot(settings))


if __name__ == "__main__":
    main()
