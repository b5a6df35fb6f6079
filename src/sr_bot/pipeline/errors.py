"""Failure taxonomy of the audio relay pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for every classified pipeline failure.

    ``stage`` names the step that failed and ``fatal`` tells whether the run
    is aborted and counted as an error.
    """

    stage: str = "unknown"
    fatal: bool = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class MissingMedia(PipelineError):
    """The message carries neither a voice clip nor an audio track."""
    stage = "resolve_reference"


class ResolutionError(PipelineError):
    """The chat platform could not turn a file id into a URL."""
    stage = "resolve_url"


class DownloadError(PipelineError):
    """Fetching the audio failed or returned a non-2xx status."""
    stage = "download"


class StagingError(PipelineError):
    """Writing the audio to the temporary file failed."""
    stage = "stage"


class EncodingError(PipelineError):
    """Building the multipart body failed."""
    stage = "encode"


class UploadError(PipelineError):
    """Posting to the transcription endpoint failed or returned non-2xx."""
    stage = "upload"


class DecodeError(PipelineError):
    """The transcription response was not the expected JSON document."""
    stage = "decode"


class PipelineCancelled(PipelineError):
    """The run was cancelled through its cancellation token."""
    stage = "cancelled"


class ReplyDeliveryError(PipelineError):
    """Sending the reply to the chat failed.

    The transcription itself succeeded, so the run still counts as a success.
    """
    stage = "reply"
    fatal = False
