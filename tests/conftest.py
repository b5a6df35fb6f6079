"""Shared pytest fixtures for the SR bot tests."""

import asyncio
import json
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from sr_bot import dependencies
from sr_bot.config.settings import Settings, TelegramConfig, TranscriptionConfig
from sr_bot.core.metrics import AudioMetrics
from sr_bot.integrations.transcription_client import TranscriptionClient
from sr_bot.pipeline.relay import AudioRelayPipeline


RECOGNITION = {"detected_lang": "en", "recognized_text": "hello world"}


class FakeServices:
    """In-process stand-in for the Telegram file host and the transcription API."""

    def __init__(self, staging_dir: Path):
        self.staging_dir = staging_dir
        self.base_url = ""
        self.download_status = 200
        self.upload_status = 200
        self.upload_body = json.dumps(RECOGNITION).encode()
        self.block_download = False
        self.block_upload = False
        self.release = asyncio.Event()
        self.download_started = asyncio.Event()
        self.upload_started = asyncio.Event()
        self.uploads = []

    @staticmethod
    def audio_for(file_id: str) -> bytes:
        return b"OggS" + file_id.encode() * 64

    def url_for(self, file_id: str) -> str:
        return f"{self.base_url}/audio/{file_id}"

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/upload"

    async def download(self, request: web.Request) -> web.Response:
        self.download_started.set()
        if self.block_download:
            await self.release.wait()
        if self.download_status != 200:
            return web.Response(status=self.download_status, text="nope")
        return web.Response(
            body=self.audio_for(request.match_info["file_id"]),
            content_type="audio/ogg",
        )

    async def upload(self, request: web.Request) -> web.Response:
        form = await request.post()
        field = form["file"]
        self.uploads.append({
            "filename": field.filename,
            "content_type": field.content_type,
            "data": field.file.read(),
            "headers": dict(request.headers),
            "staged": sorted(p.name for p in self.staging_dir.glob("audio-*.ogg")),
        })
        self.upload_started.set()
        if self.block_upload:
            await self.release.wait()
        return web.Response(
            status=self.upload_status,
            body=self.upload_body,
            content_type="application/json",
        )


class FakeChatClient:
    """ChatClient that records calls instead of talking to Telegram."""

    def __init__(self, services: FakeServices):
        self.services = services
        self.resolve_error = None
        self.send_error = None
        self.resolved = []
        self.sent = []

    async def resolve_direct_url(self, file_id: str) -> str:
        self.resolved.append(file_id)
        if self.resolve_error is not None:
            raise self.resolve_error
        return self.services.url_for(file_id)

    async def send_text(self, chat_id: int, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((chat_id, text))


@pytest.fixture(autouse=True)
def reset_dependencies():
    """Drop shared singletons between tests."""
    dependencies.reset()
    yield
    dependencies.reset()


@pytest.fixture
def staging_dir(tmp_path):
    """Directory the pipeline stages audio into."""
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def metrics():
    return AudioMetrics()


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("tests")


@pytest_asyncio.fixture
async def services(staging_dir):
    """Start the fake HTTP services on a local port."""
    fake = FakeServices(staging_dir)
    app = web.Application()
    app.router.add_get("/audio/{file_id}", fake.download)
    app.router.add_post("/upload", fake.upload)

    server = TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    fake.release.set()
    await server.close()


@pytest.fixture
def chat_client(services):
    return FakeChatClient(services)


@pytest_asyncio.fixture
async def http_client():
    client = TranscriptionClient()
    yield client
    await client.close()


@pytest.fixture
def pipeline(chat_client, metrics, http_client, tracer, staging_dir):
    return AudioRelayPipeline(
        chat_client=chat_client,
        metrics=metrics,
        http_client=http_client,
        tracer=tracer,
        temp_dir=staging_dir,
    )


@pytest.fixture
def mock_settings(staging_dir):
    """Return settings for testing."""
    return Settings(
        environment="test",
        telegram=TelegramConfig(token="123:test-token"),
        transcription=TranscriptionConfig(
            endpoint="http://127.0.0.1:8787/upload",
            temp_dir=staging_dir,
        ),
    )
