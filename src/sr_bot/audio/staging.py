"""Transient local storage for a downloaded audio payload."""

import os
import tempfile
from pathlib import Path
from typing import AsyncIterable, BinaryIO, Optional

from ..pipeline.errors import StagingError
from ..utils.logging import get_logger

logger = get_logger(__name__)

STAGED_PREFIX = "audio-"
STAGED_SUFFIX = ".ogg"


class StagedPayload:
    """Uniquely named temporary file owned by a single pipeline run.

    Use as an async context manager, or call ``create`` and ``release``
    directly; the file is deleted on exit whatever happens inside the block.
    ``release`` may be called more than once, and before ``create``.
    """

    def __init__(self, temp_dir: Optional[Path] = None, max_bytes: Optional[int] = None):
        self.temp_dir = temp_dir
        self.max_bytes = max_bytes
        self.size = 0
        self._file: Optional[BinaryIO] = None
        self._path: Optional[Path] = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise StagingError("Staged payload has not been created")
        return self._path

    @property
    def name(self) -> str:
        return str(self.path)

    def create(self) -> None:
        """Create the backing temp file."""
        try:
            fd, name = tempfile.mkstemp(
                prefix=STAGED_PREFIX,
                suffix=STAGED_SUFFIX,
                dir=str(self.temp_dir) if self.temp_dir else None,
            )
            self._path = Path(name)
            self._file = os.fdopen(fd, "w+b")
        except OSError as e:
            raise StagingError("Failed to create a temporary file", e) from e
        logger.debug("Created staged payload", extra={"staged_file": name})

    def write(self, chunk: bytes) -> None:
        if self._file is None:
            raise StagingError("Staged payload is not open")
        self.size += len(chunk)
        if self.max_bytes is not None and self.size > self.max_bytes:
            raise StagingError(
                f"Audio payload exceeds maximum of {self.max_bytes} bytes"
            )
        try:
            self._file.write(chunk)
        except OSError as e:
            raise StagingError("Failed to save the audio file to a temp file", e) from e

    async def write_stream(self, chunks: AsyncIterable[bytes]) -> int:
        """Write an async byte stream fully, then flush it to disk.

        Returns:
            Number of bytes staged
        """
        async for chunk in chunks:
            self.write(chunk)
        try:
            self._file.flush()
        except OSError as e:
            raise StagingError("Failed to save the audio file to a temp file", e) from e
        return self.size

    def rewind(self) -> BinaryIO:
        """Seek back to the first byte and return the open file."""
        if self._file is None:
            raise StagingError("Staged payload is not open")
        self._file.seek(0)
        return self._file

    def release(self) -> None:
        """Close and delete the temp file."""
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.warning(f"Failed to close staged payload: {e}")
            self._file = None
        if self._path is not None:
            try:
                self._path.unlink()
                logger.debug("Removed staged payload", extra={"staged_file": str(self._path)})
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to remove staged payload {self._path}: {e}")

    async def __aenter__(self) -> "StagedPayload":
        self.create()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()
