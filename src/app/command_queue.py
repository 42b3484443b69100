from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from src.app.commands import Command, describe_command
from src.core.errors import TransientProviderError

if TYPE_CHECKING:
    from src.app.processor import CommandProcessor


LOGGER = logging.getLogger(__name__)


class CommandQueue:
    """Single-consumer FIFO of commands.

    ``submit`` feeds a bounded channel; an ingestion task moves commands onto
    the pending deque and a drain task executes the head one at a time. The
    head is removed only after success or a non-retryable failure, so a
    command that keeps hitting rate limits blocks everything behind it.
    """

    def __init__(
        self,
        processor: "CommandProcessor",
        idle_interval: float = 1.0,
        retry_cooldown: float = 60.0,
        channel_capacity: int = 1000,
        max_attempts: int = 0,
        on_give_up: Optional[Callable[[Command], Awaitable[None]]] = None,
    ) -> None:
        self.processor = processor
        self.idle_interval = idle_interval
        self.retry_cooldown = retry_cooldown
        self.max_attempts = max(0, int(max_attempts))
        self.on_give_up = on_give_up
        self._channel: asyncio.Queue[Command] = asyncio.Queue(maxsize=max(1, int(channel_capacity)))
        self._pending: deque[Command] = deque()
        self._lock = asyncio.Lock()
        self._stopping = asyncio.Event()

    async def submit(self, command: Command) -> None:
        await self._channel.put(command)

    def pending_count(self) -> int:
        return len(self._pending) + self._channel.qsize()

    def stop(self) -> None:
        self._stopping.set()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    async def run(self) -> None:
        LOGGER.info("Command queue started")
        await asyncio.gather(self._ingest_loop(), self._drain_loop())
        LOGGER.info("Command queue stopped with %s pending command(s)", self.pending_count())

    async def _ingest_loop(self) -> None:
        while not self._stopping.is_set():
            try:
                command = await asyncio.wait_for(self._channel.get(), timeout=self.idle_interval)
            except asyncio.TimeoutError:
                continue
            async with self._lock:
                self._pending.append(command)
            LOGGER.info("Received command: adding %s to queue", describe_command(command))

    async def _drain_loop(self) -> None:
        attempts = 0
        while not self._stopping.is_set():
            async with self._lock:
                command = self._pending[0] if self._pending else None
            if command is None:
                await self._sleep(self.idle_interval)
                continue

            attempts += 1
            LOGGER.info("Processing %s (attempt %s)", describe_command(command), attempts)
            try:
                follow_ups = await self.processor.execute(command)
            except TransientProviderError as exc:
                if self.max_attempts and attempts >= self.max_attempts:
                    LOGGER.error("Giving up on %s after %s attempts: %s", describe_command(command), attempts, exc)
                    await self._give_up(command)
                    await self._complete_head([])
                    attempts = 0
                    continue
                LOGGER.warning(
                    "%s hit a transient provider error (%s); retrying in %ss",
                    describe_command(command),
                    exc,
                    self.retry_cooldown,
                )
                await self._sleep(self.retry_cooldown)
                continue
            except Exception:
                LOGGER.exception("Error processing %s; dropping it", describe_command(command))
                follow_ups = []

            await self._complete_head(follow_ups)
            attempts = 0

    async def _complete_head(self, follow_ups: list[Command]) -> None:
        async with self._lock:
            self._pending.extend(follow_ups)
            self._pending.popleft()
        if follow_ups:
            LOGGER.info("Queued %s follow-up command(s)", len(follow_ups))

    async def _give_up(self, command: Command) -> None:
        if self.on_give_up is None:
            return
        try:
            await self.on_give_up(command)
        except Exception:
            LOGGER.exception("Could not notify about abandoned %s", describe_command(command))

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
