"""Chat platform client used by the pipeline."""

from typing import Protocol

from telegram import Bot
from telegram.error import TelegramError

from ..pipeline.errors import ReplyDeliveryError, ResolutionError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ChatClient(Protocol):
    """The two chat operations the pipeline relies on."""

    async def resolve_direct_url(self, file_id: str) -> str:
        """Translate an opaque file id into a fetchable URL."""
        ...

    async def send_text(self, chat_id: int, text: str) -> None:
        """Send a plain text message to a chat."""
        ...


class TelegramChatClient:
    """``ChatClient`` backed by a python-telegram-bot ``Bot``."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def resolve_direct_url(self, file_id: str) -> str:
        try:
            tg_file = await self.bot.get_file(file_id)
        except TelegramError as e:
            raise ResolutionError("Failed to get file URL", e) from e

        if not tg_file.file_path:
            raise ResolutionError(f"Telegram returned no file path for {file_id}")
        # python-telegram-bot already expands file_path to the full download URL
        return tg_file.file_path

    async def send_text(self, chat_id: int, text: str) -> None:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise ReplyDeliveryError(
                "Failed to send recognition response to the Telegram user", e
            ) from e
