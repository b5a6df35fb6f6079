"""Multipart upload envelope built from a staged payload."""

import asyncio
import io
from dataclasses import dataclass

import aiohttp

from ..pipeline.errors import EncodingError
from .staging import StagedPayload

FORM_FIELD = "file"
UPLOAD_FILENAME = "audio.ogg"
UPLOAD_CONTENT_TYPE = "audio/ogg"


@dataclass(frozen=True)
class UploadEnvelope:
    """Encoded multipart/form-data body ready to be sent."""
    body: bytes
    content_type: str

    @property
    def headers(self):
        return {"Content-Type": self.content_type}

    def __len__(self) -> int:
        return len(self.body)


class _BufferSink:
    """Collects what a ``MultipartWriter`` writes into memory."""

    def __init__(self):
        self._buffer = io.BytesIO()

    async def write(self, chunk: bytes) -> None:
        self._buffer.write(chunk)

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()


async def encode_envelope(staged: StagedPayload) -> UploadEnvelope:
    """Wrap the staged audio in a single-part multipart body.

    Raises:
        EncodingError: If the staged bytes cannot be read or the body
            cannot be written
    """
    loop = asyncio.get_running_loop()
    try:
        fileobj = staged.rewind()
        data = await loop.run_in_executor(None, fileobj.read)
    except OSError as e:
        raise EncodingError("Failed to copy temp file content to form file", e) from e

    try:
        writer = aiohttp.MultipartWriter("form-data")
        part = writer.append(data, {"Content-Type": UPLOAD_CONTENT_TYPE})
        part.set_content_disposition("form-data", name=FORM_FIELD, filename=UPLOAD_FILENAME)

        sink = _BufferSink()
        await writer.write(sink)
    except (OSError, ValueError, TypeError) as e:
        raise EncodingError("Failed to close writer", e) from e

    return UploadEnvelope(body=sink.getvalue(), content_type=writer.content_type)
