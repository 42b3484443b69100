from __future__ import annotations

import unittest
from types import SimpleNamespace

from telethon import errors

from src.clients.telegram_gateway import TelegramGateway, split_outgoing_text
from src.core.errors import DeliveryError, PermanentCommandError


def _raw_message(message_id: int, text: str = "hi", **overrides) -> SimpleNamespace:
    values = {
        "id": message_id,
        "chat_id": -1001,
        "sender_id": 42,
        "sender": SimpleNamespace(username="alice", bot=False),
        "message": text,
        "is_group": True,
        "is_private": False,
        "out": False,
        "reply_to_msg_id": None,
        "fwd_from": None,
        "action": None,
        "voice": None,
        "audio": None,
        "video_note": None,
        "video": None,
        "photo": None,
        "document": None,
        "file": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class _FakeTelethonClient:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []
        self.deleted: list[tuple[int, list[int]]] = []
        self.messages: dict[int, SimpleNamespace] = {}
        self.send_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.delete_error: Exception | None = None

    async def send_message(self, recipient, text):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((recipient, text))

    async def get_messages(self, chat_id, ids):
        if self.fetch_error is not None:
            raise self.fetch_error
        return [self.messages.get(message_id) for message_id in ids]

    async def delete_messages(self, chat_id, ids):
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append((chat_id, list(ids)))

    async def get_me(self):
        return SimpleNamespace(id=777, username="digest_bot")


class SplitOutgoingTextTests(unittest.TestCase):
    def test_short_text_is_single_part(self) -> None:
        self.assertEqual(split_outgoing_text("  hello  "), ["hello"])
        self.assertEqual(split_outgoing_text("   "), [])

    def test_long_text_splits_on_line_breaks_within_limit(self) -> None:
        text = "\n".join(["a" * 8] * 5)

        parts = split_outgoing_text(text, limit=20)

        self.assertTrue(all(len(part) <= 20 for part in parts))
        self.assertEqual("".join(parts).replace("\n", ""), "a" * 40)

    def test_unbroken_text_is_cut_at_limit(self) -> None:
        self.assertEqual(split_outgoing_text("x" * 25, limit=10), ["x" * 10, "x" * 10, "x" * 5])


class TelegramGatewayTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = _FakeTelethonClient()
        settings = SimpleNamespace(telegram_bot_token="token", session_name="unused")
        self.gateway = TelegramGateway(settings, client=self.client)

    async def test_send_text_wraps_rpc_errors(self) -> None:
        await self.gateway.send_text(42, "hello")
        self.assertEqual(self.client.sent, [(42, "hello")])

        self.client.send_error = errors.RPCError(None, "USER_IS_BLOCKED", 400)
        with self.assertRaises(DeliveryError):
            await self.gateway.send_text(42, "hello again")

    async def test_fetch_maps_missing_and_service_messages_to_none(self) -> None:
        self.client.messages = {
            1: _raw_message(1, "first"),
            3: _raw_message(3, "", action=object()),
        }

        fetched = await self.gateway.fetch_messages_by_id(-1001, [1, 2, 3])

        self.assertEqual(fetched[0].text, "first")
        self.assertEqual(fetched[0].sender_username, "alice")
        self.assertTrue(fetched[0].is_group)
        self.assertIsNone(fetched[1])
        self.assertIsNone(fetched[2])

    async def test_fetch_failure_is_permanent(self) -> None:
        self.client.fetch_error = errors.RPCError(None, "CHANNEL_PRIVATE", 400)

        with self.assertRaises(PermanentCommandError):
            await self.gateway.fetch_messages_by_id(-1001, [1])

    async def test_fetch_with_no_ids_skips_request(self) -> None:
        self.client.fetch_error = AssertionError("should not be called")

        self.assertEqual(await self.gateway.fetch_messages_by_id(-1001, []), [])

    async def test_delete_failures_are_logged(self) -> None:
        self.client.delete_error = errors.RPCError(None, "MESSAGE_DELETE_FORBIDDEN", 403)

        with self.assertLogs("src.clients.telegram_gateway", level="INFO"):
            await self.gateway.delete_messages(-1001, [5])

    async def test_to_chat_message_reads_reply_forward_and_media(self) -> None:
        raw = _raw_message(
            9,
            "caption",
            reply_to_msg_id=4,
            fwd_from=object(),
            voice=object(),
            document=object(),
            file=SimpleNamespace(mime_type="audio/ogg", name=None),
            sender=SimpleNamespace(username=None, bot=True),
        )

        message = await self.gateway.to_chat_message(raw)

        self.assertEqual(message.reply_to_message_id, 4)
        self.assertTrue(message.is_forwarded)
        self.assertTrue(message.sender_is_bot)
        self.assertIsNone(message.sender_username)
        self.assertEqual(message.attachment.kind, "audio")
        self.assertIs(message.raw, raw)

    async def test_self_identity_is_cached(self) -> None:
        identity = await self.gateway.get_self_identity()

        self.assertEqual((identity.user_id, identity.username), (777, "digest_bot"))
        self.assertIs(await self.gateway.get_self_identity(), identity)


if __name__ == "__main__":
    unittest.main()
