"""HTTP client for fetching chat audio and posting it for transcription."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp
from opentelemetry.propagate import inject
from pydantic import ValidationError

from ..audio.envelope import UploadEnvelope
from ..models.recognition import RecognitionResult
from ..pipeline.errors import DecodeError, DownloadError, UploadError
from ..utils.logging import get_logger

logger = get_logger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class TranscriptionClient:
    """Shared aiohttp session used by every pipeline run."""

    def __init__(self, timeout: Optional[float] = None, session: Optional[aiohttp.ClientSession] = None):
        """Initialize the client.

        Args:
            timeout: Optional total timeout per request in seconds; no
                timeout when omitted
            session: Existing session to reuse (not closed by ``close``)
        """
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    @asynccontextmanager
    async def open_download(self, url: str) -> AsyncIterator[aiohttp.ClientResponse]:
        """Open a GET for ``url`` and yield the response once it is 2xx.

        Raises:
            DownloadError: On transport failure or a non-2xx status
        """
        session = await self._get_session()
        try:
            response = await session.get(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError("Failed to download the audio file", e) from e

        try:
            if not 200 <= response.status < 300:
                raise DownloadError(
                    f"Failed to download the audio file: HTTP {response.status}"
                )
            yield response
        finally:
            response.release()

    @staticmethod
    async def iter_body(response: aiohttp.ClientResponse) -> AsyncIterator[bytes]:
        """Yield the response body in chunks, mapping read errors to ``DownloadError``."""
        try:
            async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError("Failed to read the audio file body", e) from e

    async def upload(self, endpoint: str, envelope: UploadEnvelope) -> bytes:
        """POST an envelope to the transcription endpoint.

        The active trace context is injected into the request headers.

        Returns:
            Raw response body

        Raises:
            UploadError: On transport failure or a non-2xx status
        """
        headers = dict(envelope.headers)
        inject(headers)

        logger.info(
            "Uploading audio for transcription",
            extra={"endpoint": endpoint, "size_bytes": len(envelope)},
        )

        session = await self._get_session()
        try:
            async with session.post(endpoint, data=envelope.body, headers=headers) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text(errors="replace")
                    raise UploadError(
                        f"Transcription endpoint returned {response.status}: {error_text[:200]}"
                    )
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UploadError("Failed to upload the temp file", e) from e

    async def close(self):
        """Close the HTTP session."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def decode_recognition(body: bytes) -> RecognitionResult:
    """Parse a transcription response body.

    Raises:
        DecodeError: On malformed JSON or a schema mismatch
    """
    try:
        return RecognitionResult.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError("Failed to decode recognition response", e) from e
