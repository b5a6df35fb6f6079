"""Transcription service response models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RecognitionResult(BaseModel):
    """Decoded response of the transcription endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    detected_language: str = Field(..., alias="detected_lang", description="Detected language code")
    recognized_text: str = Field(..., description="Recognized text")

    def to_reply(self) -> str:
        """Render the two-line chat reply."""
        return f"Detected language: {self.detected_language}\nRecognized text: {self.recognized_text}"


class ProcessingOutcome(str, Enum):
    """Outcome label recorded once per pipeline run."""
    SUCCESS = "success"
    ERROR = "error"
