"""Inbound media reference resolved once per message."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..pipeline.errors import MissingMedia


class MediaKind(str, Enum):
    """Which kind of audio a message carries."""
    VOICE = "voice"
    AUDIO = "audio"
    NONE = "none"


@dataclass(frozen=True)
class AudioReference:
    """Identifies the audio attached to one chat message."""
    kind: MediaKind
    file_id: Optional[str]
    chat_id: int

    @classmethod
    def voice(cls, file_id: str, chat_id: int) -> "AudioReference":
        return cls(MediaKind.VOICE, file_id, chat_id)

    @classmethod
    def audio(cls, file_id: str, chat_id: int) -> "AudioReference":
        return cls(MediaKind.AUDIO, file_id, chat_id)

    @classmethod
    def empty(cls, chat_id: int) -> "AudioReference":
        return cls(MediaKind.NONE, None, chat_id)

    @classmethod
    def from_message(cls, message: Any) -> "AudioReference":
        """Build a reference from a Telegram message.

        A voice clip takes precedence over an audio track when both are set.
        """
        chat_id = message.chat_id
        voice = getattr(message, "voice", None)
        if voice is not None:
            return cls.voice(voice.file_id, chat_id)
        audio = getattr(message, "audio", None)
        if audio is not None:
            return cls.audio(audio.file_id, chat_id)
        return cls.empty(chat_id)

    def require_file_id(self) -> str:
        """Return the file id or raise ``MissingMedia``."""
        if self.kind is MediaKind.NONE or not self.file_id:
            raise MissingMedia("No audio or voice message found")
        return self.file_id
