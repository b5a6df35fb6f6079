"""Audio relay pipeline: chat audio in, recognized text back to the chat.

One call to :meth:`AudioRelayPipeline.process` handles one message from
start to finish:

1. resolve the media reference to a file id
2. ask the chat client for a direct URL
3. download it
4. stage it in a temp file (deleted on every exit path)
5. wrap it in a multipart body
6. POST it to the transcription endpoint
7. decode the JSON response
8. reply to the chat

Any failure before the reply ends the run, counts it as an error and sends
nothing to the chat. A failed reply is only logged; the run still counts as
a success because the transcription itself worked.
"""

import asyncio
import time
from enum import Enum
from pathlib import Path
from typing import Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ..audio.envelope import encode_envelope
from ..audio.reference import AudioReference
from ..audio.staging import StagedPayload
from ..core.metrics import AudioMetrics
from ..integrations.telegram_client import ChatClient
from ..integrations.transcription_client import TranscriptionClient, decode_recognition
from ..models.recognition import ProcessingOutcome, RecognitionResult
from ..utils.logging import get_logger
from .cancellation import CancellationToken, guarded
from .errors import PipelineError, ReplyDeliveryError, ResolutionError

logger = get_logger(__name__)

SPAN_NAME = "handleAudioMessage"


class Stage(str, Enum):
    """Linear run states; ``DONE`` is reached from every exit."""
    START = "start"
    REFERENCE_RESOLVED = "reference_resolved"
    URL_RESOLVED = "url_resolved"
    DOWNLOADED = "downloaded"
    STAGED = "staged"
    ENCODED = "encoded"
    UPLOADED = "uploaded"
    DECODED = "decoded"
    REPLIED = "replied"
    REPLY_FAILED = "reply_failed"
    DONE = "done"


class _Run:
    """Bookkeeping for a single pipeline run."""

    def __init__(self, audio_ref: AudioReference):
        self.audio_ref = audio_ref
        self.stage = Stage.START
        self.outcome = ProcessingOutcome.ERROR
        self.staged_name: Optional[str] = None
        self.started = time.monotonic()

    def advance(self, stage: Stage) -> None:
        self.stage = stage
        logger.debug(
            f"Pipeline stage {stage.value}",
            extra={"chat_id": self.audio_ref.chat_id, "stage": stage.value},
        )

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


class AudioRelayPipeline:
    """Relays one chat audio message to the transcription service."""

    def __init__(
        self,
        chat_client: ChatClient,
        metrics: AudioMetrics,
        http_client: TranscriptionClient,
        tracer: Optional[trace.Tracer] = None,
        temp_dir: Optional[Path] = None,
        max_audio_bytes: Optional[int] = None,
    ):
        """Initialize the pipeline.

        Args:
            chat_client: Resolves file URLs and sends replies
            metrics: Shared metrics handle
            http_client: Shared HTTP client for download and upload
            tracer: Tracer for the per-run span (global tracer if omitted)
            temp_dir: Directory for staged files (system default if omitted)
            max_audio_bytes: Optional cap on the staged payload size
        """
        self.chat_client = chat_client
        self.metrics = metrics
        self.http_client = http_client
        self.tracer = tracer or trace.get_tracer(__name__)
        self.temp_dir = temp_dir
        self.max_audio_bytes = max_audio_bytes

    async def process(
        self,
        audio_ref: AudioReference,
        reply_target: Optional[int],
        endpoint: str,
        cancel: Optional[CancellationToken] = None,
    ) -> None:
        """Run the pipeline for one message.

        Pipeline failures are logged, traced and counted but never raised.
        Cancelling the surrounding asyncio task still cleans up and counts
        the run before ``CancelledError`` propagates.

        Args:
            audio_ref: Media reference of the incoming message
            reply_target: Chat to reply to; defaults to the message chat
            endpoint: Transcription endpoint URL
            cancel: Optional token aborting in-flight network calls
        """
        run = _Run(audio_ref)
        target = reply_target if reply_target is not None else audio_ref.chat_id

        with self.tracer.start_as_current_span(SPAN_NAME) as span:
            span.set_attribute("chat.id", str(audio_ref.chat_id))
            span.set_attribute("media.kind", audio_ref.kind.value)
            try:
                await self._run(run, target, endpoint, cancel, span)
                run.outcome = ProcessingOutcome.SUCCESS
                span.set_status(Status(StatusCode.OK))
            except PipelineError as e:
                self._record_failure(span, e, type(e).__name__, e.stage)
            except asyncio.CancelledError:
                logger.warning(
                    "Audio processing cancelled",
                    extra={"chat_id": audio_ref.chat_id, "stage": run.stage.value},
                )
                span.set_status(Status(StatusCode.ERROR, "Processing cancelled"))
                self.metrics.record_error("CancelledError")
                raise
            except Exception as e:
                self._record_failure(span, e, type(e).__name__, run.stage.value, exc_info=True)
            finally:
                span.set_attribute("pipeline.stage", run.stage.value)
                span.set_attribute("status", run.outcome.value)
                run.advance(Stage.DONE)
                self.metrics.record_outcome(run.outcome, run.elapsed)

    async def _run(
        self,
        run: _Run,
        reply_target: int,
        endpoint: str,
        cancel: Optional[CancellationToken],
        span: trace.Span,
    ) -> None:
        file_id = run.audio_ref.require_file_id()
        run.advance(Stage.REFERENCE_RESOLVED)

        url = await guarded(cancel, self._resolve_url(file_id))
        run.advance(Stage.URL_RESOLVED)

        # The temp file is only created once the download has succeeded
        staged = StagedPayload(self.temp_dir, self.max_audio_bytes)
        try:
            await guarded(cancel, self._download(url, staged, run))

            self._check_cancelled(cancel)
            envelope = await encode_envelope(staged)
            run.advance(Stage.ENCODED)

            body = await guarded(cancel, self.http_client.upload(endpoint, envelope))
            run.advance(Stage.UPLOADED)

            result = decode_recognition(body)
            run.advance(Stage.DECODED)
            logger.info(
                "Transcription received",
                extra={
                    "chat_id": run.audio_ref.chat_id,
                    "language": result.detected_language,
                    "text_length": len(result.recognized_text),
                },
            )

            self._check_cancelled(cancel)
            await self._reply(run, reply_target, result)
        finally:
            staged.release()

        logger.info("Temporary audio file successfully uploaded")
        span.add_event(
            "Temporary audio file uploaded",
            attributes={"filename": run.staged_name},
        )

    async def _resolve_url(self, file_id: str) -> str:
        try:
            return await self.chat_client.resolve_direct_url(file_id)
        except PipelineError:
            raise
        except Exception as e:
            raise ResolutionError("Failed to get file URL", e) from e

    async def _download(self, url: str, staged: StagedPayload, run: _Run) -> None:
        async with self.http_client.open_download(url) as response:
            run.advance(Stage.DOWNLOADED)
            staged.create()
            run.staged_name = staged.name
            size = await staged.write_stream(self.http_client.iter_body(response))
        run.advance(Stage.STAGED)
        logger.info(
            "Audio staged",
            extra={"chat_id": run.audio_ref.chat_id, "size_bytes": size},
        )

    async def _reply(self, run: _Run, reply_target: int, result: RecognitionResult) -> None:
        try:
            await self.chat_client.send_text(reply_target, result.to_reply())
        except Exception as e:
            if not isinstance(e, ReplyDeliveryError):
                e = ReplyDeliveryError(
                    "Failed to send recognition response to the Telegram user", e
                )
            # Delivery failures do not change the outcome
            logger.error(str(e), extra={"chat_id": reply_target, "stage": e.stage})
            run.advance(Stage.REPLY_FAILED)
            return
        run.advance(Stage.REPLIED)

    @staticmethod
    def _check_cancelled(cancel: Optional[CancellationToken]) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled()

    def _record_failure(
        self,
        span: trace.Span,
        error: Exception,
        error_type: str,
        stage: str,
        exc_info: bool = False,
    ) -> None:
        logger.error(
            str(error),
            extra={"error_type": error_type, "stage": stage},
            exc_info=exc_info,
        )
        span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, str(error)))
        self.metrics.record_error(error_type)
