from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.app.commands import Ask, Command, Summarize, SummarizeOne, SummaryLength, parse_length
from src.app.handlers.intent_parsing import (
    ParsedCommand,
    parse_ask_args,
    parse_summarize_args,
    parse_tldr_args,
)
from src.app.messages import help_text, msg
from src.core.errors import DeliveryError

if TYPE_CHECKING:
    from src.app.bot_orchestrator import DigestBot
    from src.clients.models import ChatMessage


LOGGER = logging.getLogger(__name__)

HELP_COMMANDS = {"help", "start"}


class TriggerHandler:
    """Turns chat commands into queued jobs."""

    def __init__(self, bot: "DigestBot") -> None:
        self.bot = bot

    @property
    def default_length(self) -> SummaryLength:
        return parse_length(self.bot.settings.default_summary_length) or SummaryLength.MEDIUM

    async def handle_group_command(self, message: "ChatMessage", parsed: ParsedCommand) -> bool:
        if parsed.name in HELP_COMMANDS:
            await self.bot.gateway.send_text(message.chat_id, self._help())
            return True
        if parsed.name == "summarize":
            await self.summarize_command(message, parsed)
            return True
        if parsed.name == "ask":
            await self.ask_command(message, parsed)
            return True
        if parsed.name == "tldr":
            await self.tldr_command(message, parsed)
            return True
        return False

    async def summarize_command(self, message: "ChatMessage", parsed: ParsedCommand) -> None:
        settings = self.bot.settings
        request = parse_summarize_args(parsed.args, self.default_length, settings.max_summarize_count)
        if request is None:
            await self.bot.gateway.send_text(
                message.chat_id,
                msg("usage_summarize", max_count=settings.max_summarize_count),
            )
            return

        recipient_id = await self._open_private_channel(message, msg("status_summarizing"))
        if recipient_id is None:
            return
        await self._submit(
            message,
            Summarize(
                chat_id=message.chat_id,
                recipient_id=recipient_id,
                message_count=request.count,
                length=request.length,
                sender_filter=request.username,
            ),
        )

    async def ask_command(self, message: "ChatMessage", parsed: ParsedCommand) -> None:
        settings = self.bot.settings
        request = parse_ask_args(parsed.args, settings.ask_default_count, settings.max_summarize_count)
        if request is None:
            await self.bot.gateway.send_text(message.chat_id, msg("usage_ask"))
            return

        recipient_id = await self._open_private_channel(message, msg("status_answering"))
        if recipient_id is None:
            return
        await self._submit(
            message,
            Ask(
                chat_id=message.chat_id,
                recipient_id=recipient_id,
                question=request.question,
                message_count=request.count,
                length=self.default_length,
            ),
        )

    async def tldr_command(self, message: "ChatMessage", parsed: ParsedCommand) -> None:
        length = parse_tldr_args(parsed.args, self.default_length)
        if length is None or message.reply_to_message_id is None:
            await self.bot.gateway.send_text(message.chat_id, msg("usage_tldr"))
            return

        recipient_id = await self._open_private_channel(message, msg("status_summarizing_one"))
        if recipient_id is None:
            return
        await self._submit(
            message,
            SummarizeOne(
                chat_id=message.chat_id,
                recipient_id=recipient_id,
                message_id=message.reply_to_message_id,
                length=length,
            ),
        )

    async def handle_private_message(self, message: "ChatMessage", parsed: ParsedCommand | None) -> None:
        if parsed is not None:
            if parsed.name in HELP_COMMANDS:
                await self.bot.gateway.send_text(message.chat_id, self._help())
            return
        if not message.text and message.attachment is None:
            return

        await self.bot.gateway.send_text(message.chat_id, msg("status_summarizing_one"))
        await self.bot.command_queue.submit(
            SummarizeOne(
                chat_id=message.chat_id,
                recipient_id=message.chat_id,
                message_id=message.message_id,
                length=self.default_length,
            )
        )

    async def _open_private_channel(self, message: "ChatMessage", status_text: str) -> int | None:
        if message.sender_id is None:
            await self.bot.gateway.send_text(message.chat_id, msg("error_sender_unknown"))
            return None
        try:
            await self.bot.gateway.send_text(message.sender_id, status_text)
        except DeliveryError as exc:
            LOGGER.info("Cannot message requester %s privately: %s", message.sender_id, exc)
            await self.bot.gateway.send_text(message.chat_id, msg("error_start_conversation"))
            return None
        return message.sender_id

    async def _submit(self, message: "ChatMessage", command: Command) -> None:
        await self.bot.command_queue.submit(command)
        if self.bot.settings.delete_trigger_messages:
            await self.bot.gateway.delete_messages(message.chat_id, [message.message_id])

    def _help(self) -> str:
        settings = self.bot.settings
        return help_text(max_count=settings.max_summarize_count, capacity=settings.ledger_capacity)
