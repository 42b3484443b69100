from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional

from src.app.chunker import PromptChunker, PromptTemplate, split_long_text
from src.app.commands import (
    Ask,
    Command,
    LengthBudget,
    SendPrompt,
    Summarize,
    SummarizeOne,
    SummaryLength,
    describe_command,
)
from src.app.messages import msg
from src.app.prompts import group_summary_header, question_header, single_text_summary_header
from src.core.errors import PermanentCommandError, ProviderError, TransientProviderError

if TYPE_CHECKING:
    from src.clients.media_transcoder import MediaTranscoder
    from src.clients.models import ChatMessage
    from src.clients.openai_client import OpenAIClient
    from src.clients.stt_client import SttClient
    from src.clients.telegram_gateway import TelegramGateway
    from src.storage.ledger import MessageLedger


LOGGER = logging.getLogger(__name__)

_DEFAULT_MEDIA_SUFFIX = {"audio": ".ogg", "video": ".mp4"}


class CommandProcessor:
    """Executes one queued command and returns its follow-up commands."""

    def __init__(
        self,
        gateway: "TelegramGateway",
        ledger: "MessageLedger",
        completion: "OpenAIClient",
        stt: "SttClient",
        transcoder: "MediaTranscoder",
        chunker: PromptChunker,
        length_policy: Mapping[SummaryLength, LengthBudget],
        run_blocking: Callable[..., Awaitable[Any]],
        fetch_batch_size: int = 100,
        temperature: float = 0.5,
        top_p: float = 0.5,
    ) -> None:
        self.gateway = gateway
        self.ledger = ledger
        self.completion = completion
        self.stt = stt
        self.transcoder = transcoder
        self.chunker = chunker
        self.length_policy = dict(length_policy)
        self.run_blocking: Callable[..., Awaitable[Any]] = run_blocking
        self.fetch_batch_size = max(1, int(fetch_batch_size))
        self.temperature = temperature
        self.top_p = top_p

    async def execute(self, command: Command) -> list[Command]:
        if isinstance(command, Summarize):
            return await self._summarize(command)
        if isinstance(command, SummarizeOne):
            return await self._summarize_one(command)
        if isinstance(command, Ask):
            return await self._ask(command)
        if isinstance(command, SendPrompt):
            await self._send_prompt(command)
            return []
        raise PermanentCommandError(f"Unsupported command: {type(command).__name__}")

    async def notify_abandoned(self, command: Command) -> None:
        recipient = getattr(command, "recipient_id", None)
        if recipient is None:
            return
        await self.gateway.send_text(recipient, msg("error_provider_busy"))

    async def _summarize(self, command: Summarize) -> list[Command]:
        messages = await self._load_history(command.chat_id, command.message_count, command.sender_filter)
        if not messages:
            await self.gateway.send_text(command.recipient_id, msg("error_no_messages"))
            return []

        budget = self._budget(command.length)
        template = PromptTemplate(header=group_summary_header(budget.target_words))
        return self._prompts_for(command.recipient_id, messages, template, budget)

    async def _ask(self, command: Ask) -> list[Command]:
        messages = await self._load_history(command.chat_id, command.message_count)
        if not messages:
            await self.gateway.send_text(command.recipient_id, msg("error_no_messages"))
            return []

        budget = self._budget(command.length)
        template = PromptTemplate(header=question_header(command.question, budget.target_words))
        return self._prompts_for(command.recipient_id, messages, template, budget)

    async def _summarize_one(self, command: SummarizeOne) -> list[Command]:
        fetched = await self.gateway.fetch_messages_by_id(command.chat_id, [command.message_id])
        message = fetched[0] if fetched else None
        if message is None:
            await self.gateway.send_text(command.recipient_id, msg("error_message_missing"))
            return []

        texts: list[str] = []
        if message.has_transcribable_media:
            transcript = await self._transcribe_attachment(command.recipient_id, message)
            if transcript is None:
                return []
            texts.append(transcript)
        if message.text.strip():
            texts.append(message.text.strip())
        if not texts:
            await self.gateway.send_text(command.recipient_id, msg("error_unsupported_content"))
            return []

        budget = self._budget(command.length)
        template = PromptTemplate(header=single_text_summary_header(budget.target_words))
        sender = message.sender_label
        segment_limit = self.chunker.segment_limit(template, sender)
        entries = [(sender, piece) for text in texts for piece in _segments(text, segment_limit)]
        payloads = self.chunker.pack(entries, template, budget.max_output_tokens)
        LOGGER.info("Prepared %s prompt(s) for message %s", len(payloads), command.message_id)
        return [SendPrompt(recipient_id=command.recipient_id, payload=payload) for payload in payloads]

    async def _send_prompt(self, command: SendPrompt) -> None:
        payload = command.payload
        try:
            answer = await self.run_blocking(
                self.completion.chat_completion,
                payload.as_messages(),
                payload.max_output_tokens,
                self.temperature,
                self.top_p,
            )
        except TransientProviderError:
            raise
        except ProviderError as exc:
            LOGGER.error("Completion failed for %s: %s", describe_command(command), exc)
            await self.gateway.send_text(command.recipient_id, msg("error_summary_failed"))
            return
        await self.gateway.send_text(command.recipient_id, answer)

    async def _load_history(
        self,
        chat_id: int,
        count: int,
        sender_filter: Optional[str] = None,
    ) -> list["ChatMessage"]:
        ids = self.ledger.get_message_ids(chat_id, count)
        collected: list["ChatMessage"] = []
        for start in range(0, len(ids), self.fetch_batch_size):
            batch = ids[start : start + self.fetch_batch_size]
            for message in await self.gateway.fetch_messages_by_id(chat_id, batch):
                if message is None or not message.text.strip():
                    continue
                if sender_filter and message.sender_username != sender_filter:
                    continue
                collected.append(message)
        collected.reverse()
        LOGGER.info("Loaded %s of %s recorded messages for chat %s", len(collected), len(ids), chat_id)
        return collected

    async def _transcribe_attachment(self, recipient_id: int, message: "ChatMessage") -> str | None:
        attachment = message.attachment
        suffix = Path(attachment.file_name).suffix.lower() or _DEFAULT_MEDIA_SUFFIX.get(attachment.kind, "")
        with tempfile.TemporaryDirectory(prefix="digest-media-") as workdir:
            media_path = Path(workdir) / f"media{suffix}"
            if not await self.gateway.download_media(message, media_path):
                await self.gateway.send_text(recipient_id, msg("error_download_media"))
                return None

            audio_path = media_path
            if attachment.kind == "video":
                audio_path = Path(workdir) / "audio.mp3"
                converted = await self.run_blocking(self.transcoder.video_to_audio, media_path, audio_path)
                if not converted:
                    await self.gateway.send_text(recipient_id, msg("error_transcode_media"))
                    return None

            try:
                transcript = await self.run_blocking(self.stt.transcribe_file, audio_path)
            except TransientProviderError:
                raise
            except ProviderError as exc:
                LOGGER.warning("Transcription failed for message %s: %s", message.message_id, exc)
                await self.gateway.send_text(recipient_id, msg("error_transcribe_media"))
                return None
        return transcript

    def _prompts_for(
        self,
        recipient_id: int,
        messages: list["ChatMessage"],
        template: PromptTemplate,
        budget: LengthBudget,
    ) -> list[Command]:
        entries = [(message.sender_label, message.text.strip()) for message in messages]
        payloads = self.chunker.pack(entries, template, budget.max_output_tokens)
        LOGGER.info("Prepared %s prompt(s) from %s messages", len(payloads), len(entries))
        return [SendPrompt(recipient_id=recipient_id, payload=payload) for payload in payloads]

    def _budget(self, length: SummaryLength) -> LengthBudget:
        return self.length_policy[length]


def _segments(text: str, limit: int) -> list[str]:
    if len(text) <= limit:
        return [text]
    return split_long_text(text, limit)
