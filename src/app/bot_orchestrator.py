from __future__ import annotations

import asyncio
import logging
import signal

from src.app.chunker import PromptChunker
from src.app.command_queue import CommandQueue
from src.app.commands import build_length_policy
from src.app.handlers.chat_pipeline import ChatPipelineHandler
from src.app.handlers.commands.trigger_handler import TriggerHandler
from src.app.handlers.runtime.message_ingest_handler import MessageIngestHandler
from src.app.processor import CommandProcessor
from src.clients.media_transcoder import MediaTranscoder
from src.clients.models import SelfIdentity
from src.clients.openai_client import OpenAIClient
from src.clients.stt_client import SttClient
from src.clients.telegram_gateway import TelegramGateway
from src.core.config import Settings
from src.storage.ledger import MessageLedger


LOGGER = logging.getLogger(__name__)


class DigestBot:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.ledger = MessageLedger(settings.db_path, capacity=settings.ledger_capacity)
        self.gateway = TelegramGateway(settings)
        self.openai = OpenAIClient(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            transcription_model=settings.openai_transcription_model,
            request_timeout_seconds=settings.openai_request_timeout_seconds,
        )
        self.stt = SttClient(settings, self.openai)
        if not self.stt.is_enabled():
            LOGGER.warning("STT provider '%s' is not supported; voice and video summaries are disabled", settings.stt_provider)
        self.transcoder = MediaTranscoder()
        self.processor = CommandProcessor(
            gateway=self.gateway,
            ledger=self.ledger,
            completion=self.openai,
            stt=self.stt,
            transcoder=self.transcoder,
            chunker=PromptChunker(settings.prompt_char_budget),
            length_policy=build_length_policy(settings.length_budgets),
            run_blocking=self.run_blocking,
            fetch_batch_size=settings.fetch_batch_size,
            temperature=settings.openai_temperature,
            top_p=settings.openai_top_p,
        )
        self.command_queue = CommandQueue(
            self.processor,
            idle_interval=settings.idle_poll_seconds,
            retry_cooldown=settings.retry_cooldown_seconds,
            channel_capacity=settings.command_channel_capacity,
            max_attempts=settings.retry_max_attempts,
            on_give_up=self.processor.notify_abandoned,
        )
        self.identity = SelfIdentity(user_id=0, username="")
        self._disconnect_task: asyncio.Task | None = None
        self.message_ingest_handler = MessageIngestHandler(self)
        self.trigger_handler = TriggerHandler(self)
        self.chat_pipeline_handler = ChatPipelineHandler(self)

    def run(self) -> None:
        logging.basicConfig(
            level=getattr(logging, self.settings.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
        logging.getLogger("telethon").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        try:
            asyncio.run(self.run_async())
        except KeyboardInterrupt:
            LOGGER.info("Ctrl-C received, shutting down...")

    async def run_async(self) -> None:
        await self.gateway.start()
        self.identity = await self.gateway.get_self_identity()
        self.gateway.on_message(self.chat_pipeline_handler.handle_message)
        self._install_signal_handlers()

        queue_task = asyncio.create_task(self.command_queue.run())
        try:
            await self.gateway.run_until_disconnected()
        finally:
            self.command_queue.stop()
            await queue_task
            self.ledger.close()
            LOGGER.info("Digest bot stopped")

    async def run_blocking(self, func, *args, **kwargs):
        return await asyncio.to_thread(func, *args, **kwargs)

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._request_shutdown)
            except (NotImplementedError, RuntimeError):
                continue

    def _request_shutdown(self) -> None:
        LOGGER.info("Shutdown requested")
        self.command_queue.stop()
        if self._disconnect_task is None:
            self._disconnect_task = asyncio.get_running_loop().create_task(self.gateway.disconnect())
