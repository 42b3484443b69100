from __future__ import annotations

import unittest
from types import SimpleNamespace

from src.app.handlers.chat_pipeline import ChatPipelineHandler
from src.clients.models import ChatMessage, SelfIdentity


class _CallRecorder:
    def __init__(self, result=False) -> None:
        self.calls: list[tuple] = []
        self.result = result

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result


class _SyncRecorder:
    def __init__(self, result=True) -> None:
        self.calls: list[tuple] = []
        self.result = result

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result


def _message(text: str = "hello", **overrides) -> ChatMessage:
    values = {"chat_id": -1001, "message_id": 3, "sender_id": 42, "text": text, "is_group": True}
    values.update(overrides)
    return ChatMessage(**values)


class ChatPipelineTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.group_command = _CallRecorder(result=True)
        self.private_message = _CallRecorder()
        self.ingest = _SyncRecorder()
        bot = SimpleNamespace(
            identity=SelfIdentity(user_id=1, username="digest_bot"),
            trigger_handler=SimpleNamespace(
                handle_group_command=self.group_command,
                handle_private_message=self.private_message,
            ),
            message_ingest_handler=SimpleNamespace(ingest_message=self.ingest),
        )
        self.handler = ChatPipelineHandler(bot)

    async def test_plain_group_message_is_recorded(self) -> None:
        await self.handler.handle_message(_message("just chatting"))

        self.assertEqual(len(self.ingest.calls), 1)
        self.assertEqual(self.group_command.calls, [])

    async def test_group_command_is_routed_and_not_recorded(self) -> None:
        await self.handler.handle_message(_message("/summarize 20"))

        self.assertEqual(len(self.group_command.calls), 1)
        parsed = self.group_command.calls[0][0][1]
        self.assertEqual(parsed.name, "summarize")
        self.assertEqual(self.ingest.calls, [])

    async def test_unhandled_command_is_not_recorded(self) -> None:
        self.group_command.result = False

        await self.handler.handle_message(_message("/weather"))

        self.assertEqual(len(self.group_command.calls), 1)
        self.assertEqual(self.ingest.calls, [])

    async def test_command_for_another_bot_is_not_recorded(self) -> None:
        await self.handler.handle_message(_message("/summarize@other_bot 20"))

        self.assertEqual(self.group_command.calls, [])
        self.assertEqual(self.ingest.calls, [])

    async def test_private_message_goes_to_trigger_handler(self) -> None:
        await self.handler.handle_message(_message("forwarded", chat_id=42, is_group=False, is_private=True))

        self.assertEqual(len(self.private_message.calls), 1)
        self.assertIsNone(self.private_message.calls[0][0][1])
        self.assertEqual(self.ingest.calls, [])

    async def test_outgoing_and_channel_messages_are_ignored(self) -> None:
        await self.handler.handle_message(_message(outgoing=True))
        await self.handler.handle_message(_message(is_group=False))

        self.assertEqual(self.ingest.calls, [])
        self.assertEqual(self.private_message.calls, [])

    async def test_handler_errors_are_logged(self) -> None:
        async def _boom(*_args, **_kwargs):
            raise RuntimeError("boom")

        self.handler.bot.trigger_handler.handle_group_command = _boom

        with self.assertLogs("src.app.handlers.chat_pipeline", level="ERROR"):
            await self.handler.handle_message(_message("/summarize 5"))


if __name__ == "__main__":
    unittest.main()
