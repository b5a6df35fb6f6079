"""Unit tests for the Telegram dispatcher."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from telegram.ext import MessageHandler

from sr_bot.audio.reference import AudioReference
from sr_bot.bot.handlers import AudioMessageDispatcher, build_audio_handler
from sr_bot.core.shutdown import ShutdownHandler

ENDPOINT = "http://stt:8787/upload"


@pytest.fixture
def dispatcher(tracer):
    pipeline = Mock()
    pipeline.process = AsyncMock()
    return AudioMessageDispatcher(pipeline, ENDPOINT, ShutdownHandler(), tracer=tracer)


@pytest.mark.asyncio
async def test_dispatch_runs_pipeline(dispatcher, span_exporter):
    ref = AudioReference.voice("v1", 77)

    task = dispatcher.dispatch(ref)
    await task

    dispatcher.pipeline.process.assert_awaited_once_with(ref, 77, ENDPOINT)
    spans = span_exporter.get_finished_spans()
    assert [s.name for s in spans] == ["processMessage"]
    assert spans[0].attributes["type"] == "audioMessage"


@pytest.mark.asyncio
async def test_dispatch_registers_task(dispatcher):
    release = asyncio.Event()

    async def slow_process(*args):
        await release.wait()

    dispatcher.pipeline.process = slow_process
    task = dispatcher.dispatch(AudioReference.voice("v1", 77))
    assert dispatcher.shutdown_handler.pending == 1

    release.set()
    await task
    await asyncio.sleep(0)
    assert dispatcher.shutdown_handler.pending == 0


@pytest.mark.asyncio
async def test_handle_builds_reference_from_message(dispatcher):
    dispatcher.dispatch = Mock()
    message = SimpleNamespace(
        chat_id=5,
        voice=None,
        audio=SimpleNamespace(file_id="track"),
    )
    update = SimpleNamespace(effective_message=message)

    await dispatcher.handle(update, None)

    dispatcher.dispatch.assert_called_once_with(AudioReference.audio("track", 5))


@pytest.mark.asyncio
async def test_handle_ignores_updates_without_message(dispatcher):
    dispatcher.dispatch = Mock()

    await dispatcher.handle(SimpleNamespace(effective_message=None), None)

    dispatcher.dispatch.assert_not_called()


@pytest.mark.asyncio
async def test_shutdown_cancels_inflight_runs(dispatcher):
    started = asyncio.Event()

    async def stuck_process(*args):
        started.set()
        await asyncio.sleep(60)

    dispatcher.pipeline.process = stuck_process
    task = dispatcher.dispatch(AudioReference.voice("v1", 1))
    await started.wait()

    await dispatcher.shutdown_handler.cleanup()

    assert task.cancelled()


def test_build_audio_handler(dispatcher):
    handler = build_audio_handler(dispatcher)
    assert isinstance(handler, MessageHandler)
    assert handler.callback == dispatcher.handle
