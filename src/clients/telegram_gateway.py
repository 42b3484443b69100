from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Sequence

from telethon import TelegramClient, errors, events, utils

from src.clients.models import ChatMessage, SelfIdentity, extract_attachment_ref
from src.core.config import Settings
from src.core.errors import DeliveryError, PermanentCommandError


LOGGER = logging.getLogger(__name__)

TELEGRAM_MAX_MESSAGE_LENGTH = 4096


def split_outgoing_text(text: str, limit: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> list[str]:
    remaining = (text or "").strip()
    parts: list[str] = []
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = remaining.rfind(" ", 0, limit)
        if cut <= 0:
            cut = limit
        parts.append(remaining[:cut].rstrip())
        remaining = remaining[cut:].lstrip()
    if remaining:
        parts.append(remaining)
    return parts


class TelegramGateway:
    """Bot session over MTProto; bots may fetch group messages by id here."""

    def __init__(self, settings: Settings, client: TelegramClient | None = None):
        self.settings = settings
        if client is None:
            Path(settings.session_name).parent.mkdir(parents=True, exist_ok=True)
            client = TelegramClient(
                settings.session_name,
                settings.telegram_api_id,
                settings.telegram_api_hash,
            )
        self.client = client
        self._identity: SelfIdentity | None = None

    async def start(self) -> None:
        await self.client.start(bot_token=self.settings.telegram_bot_token)
        identity = await self.get_self_identity()
        LOGGER.info("Connected to Telegram as @%s (%s)", identity.username, identity.user_id)

    async def run_until_disconnected(self) -> None:
        await self.client.run_until_disconnected()

    async def disconnect(self) -> None:
        await self.client.disconnect()

    def on_message(self, callback: Callable[[ChatMessage], Awaitable[None]]) -> None:
        async def _on_new_message(event: Any) -> None:
            if event.message is None:
                return
            message = await self.to_chat_message(event.message)
            await callback(message)

        self.client.add_event_handler(_on_new_message, events.NewMessage())

    async def get_self_identity(self) -> SelfIdentity:
        if self._identity is None:
            me = await self.client.get_me()
            self._identity = SelfIdentity(user_id=int(me.id), username=(me.username or "").strip())
        return self._identity

    async def send_text(self, recipient: int, text: str) -> None:
        parts = split_outgoing_text(text)
        if not parts:
            return
        try:
            for part in parts:
                await self.client.send_message(recipient, part)
        except (errors.RPCError, ValueError) as exc:
            raise DeliveryError(f"Could not deliver message to {recipient}: {exc}") from exc

    async def fetch_messages_by_id(self, chat_id: int, ids: Sequence[int]) -> list[ChatMessage | None]:
        if not ids:
            return []
        try:
            fetched = await self.client.get_messages(chat_id, ids=list(ids))
        except (errors.RPCError, ValueError) as exc:
            raise PermanentCommandError(f"Could not fetch messages from chat {chat_id}: {exc}") from exc
        if not isinstance(fetched, list):
            fetched = [fetched]

        results: list[ChatMessage | None] = []
        for raw in fetched:
            if raw is None or getattr(raw, "action", None) is not None:
                results.append(None)
                continue
            results.append(await self.to_chat_message(raw))
        return results

    async def delete_messages(self, chat_id: int, ids: Iterable[int]) -> None:
        id_list = [int(message_id) for message_id in ids]
        if not id_list:
            return
        try:
            await self.client.delete_messages(chat_id, id_list)
        except (errors.RPCError, ValueError) as exc:
            LOGGER.info("Could not delete messages %s in chat %s: %s", id_list, chat_id, exc)

    async def download_media(self, message: ChatMessage, path: Path) -> bool:
        if message.raw is None:
            return False
        try:
            result = await self.client.download_media(message.raw, file=str(path))
        except (errors.RPCError, OSError, ValueError) as exc:
            LOGGER.warning("Media download failed for message %s: %s", message.message_id, exc)
            return False
        return bool(result) and Path(result).exists()

    async def to_chat_message(self, raw: Any) -> ChatMessage:
        sender = getattr(raw, "sender", None)
        if sender is None and getattr(raw, "sender_id", None) is not None:
            try:
                sender = await raw.get_sender()
            except (errors.RPCError, ValueError):
                sender = None

        username = (getattr(sender, "username", None) or "").strip() or None
        display_name = utils.get_display_name(sender) if sender is not None else ""
        sender_id = getattr(raw, "sender_id", None)
        return ChatMessage(
            chat_id=int(raw.chat_id),
            message_id=int(raw.id),
            sender_id=int(sender_id) if sender_id is not None else None,
            sender_username=username,
            sender_display_name=display_name or "",
            sender_is_bot=bool(getattr(sender, "bot", False)),
            text=(getattr(raw, "message", None) or "").strip(),
            is_group=bool(getattr(raw, "is_group", False)),
            is_private=bool(getattr(raw, "is_private", False)),
            outgoing=bool(getattr(raw, "out", False)),
            reply_to_message_id=getattr(raw, "reply_to_msg_id", None),
            is_forwarded=getattr(raw, "fwd_from", None) is not None,
            attachment=extract_attachment_ref(raw),
            raw=raw,
        )
