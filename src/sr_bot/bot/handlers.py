"""Telegram update handlers that feed the audio relay pipeline."""

import asyncio
from typing import Optional

from opentelemetry import trace
from telegram import Update
from telegram.ext import ContextTypes, MessageHandler, filters

from ..audio.reference import AudioReference
from ..core.shutdown import ShutdownHandler
from ..pipeline.relay import AudioRelayPipeline
from ..utils.logging import get_logger

logger = get_logger(__name__)


class AudioMessageDispatcher:
    """Schedules one pipeline run per incoming voice or audio message."""

    def __init__(
        self,
        pipeline: AudioRelayPipeline,
        endpoint: str,
        shutdown_handler: ShutdownHandler,
        tracer: Optional[trace.Tracer] = None,
    ):
        self.pipeline = pipeline
        self.endpoint = endpoint
        self.shutdown_handler = shutdown_handler
        self.tracer = tracer or trace.get_tracer(__name__)

    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Telegram callback; returns as soon as the run is scheduled."""
        message = update.effective_message
        if message is None:
            return

        logger.info("Audio or voice message received", extra={"chat_id": message.chat_id})
        self.dispatch(AudioReference.from_message(message))

    def dispatch(self, audio_ref: AudioReference) -> asyncio.Task:
        """Start a fire-and-forget pipeline run for ``audio_ref``."""
        task = asyncio.create_task(self._process(audio_ref))
        self.shutdown_handler.register_task(task)
        return task

    async def _process(self, audio_ref: AudioReference) -> None:
        with self.tracer.start_as_current_span("processMessage") as span:
            span.set_attribute("type", "audioMessage")
            await self.pipeline.process(audio_ref, audio_ref.chat_id, self.endpoint)


def build_audio_handler(dispatcher: AudioMessageDispatcher) -> MessageHandler:
    """Message handler matching voice clips and audio tracks."""
    return MessageHandler(filters.VOICE | filters.AUDIO, dispatcher.handle)
