from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.app.handlers.intent_parsing import is_command_text, parse_command

if TYPE_CHECKING:
    from src.app.bot_orchestrator import DigestBot
    from src.clients.models import ChatMessage


LOGGER = logging.getLogger(__name__)


class ChatPipelineHandler:
    def __init__(self, bot: "DigestBot") -> None:
        self.bot = bot

    async def handle_message(self, message: "ChatMessage") -> None:
        try:
            await self.route_message(message)
        except Exception:
            LOGGER.exception("Error processing message %s in chat %s", message.message_id, message.chat_id)

    async def route_message(self, message: "ChatMessage") -> None:
        if message.outgoing:
            return

        parsed = parse_command(message.text, self.bot.identity.username)
        if message.is_private:
            await self.bot.trigger_handler.handle_private_message(message, parsed)
            return
        if not message.is_group:
            return

        if parsed is not None and await self.bot.trigger_handler.handle_group_command(message, parsed):
            return
        if is_command_text(message.text):
            return
        self.bot.message_ingest_handler.ingest_message(message)
