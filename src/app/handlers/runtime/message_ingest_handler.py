from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.core.errors import StorageError

if TYPE_CHECKING:
    from src.app.bot_orchestrator import DigestBot
    from src.clients.models import ChatMessage


LOGGER = logging.getLogger(__name__)


class MessageIngestHandler:
    def __init__(self, bot: "DigestBot") -> None:
        self.bot = bot

    def ingest_message(self, message: "ChatMessage") -> bool:
        if not self.should_record_message(message):
            return False
        try:
            self.bot.ledger.add_message_id(message.chat_id, message.message_id)
        except StorageError:
            LOGGER.exception("Could not record message %s for chat %s", message.message_id, message.chat_id)
            return False
        return True

    def should_record_message(self, message: "ChatMessage") -> bool:
        if not message.is_group or message.outgoing:
            return False
        return not message.sender_is_bot
