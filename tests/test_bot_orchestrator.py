from __future__ import annotations

import unittest
from types import SimpleNamespace

from src.app.bot_orchestrator import DigestBot


class _FakeGateway:
    def __init__(self) -> None:
        self.disconnects = 0

    async def disconnect(self):
        self.disconnects += 1


class ShutdownTests(unittest.IsolatedAsyncioTestCase):
    def _bot(self) -> DigestBot:
        bot = DigestBot.__new__(DigestBot)
        bot.stopped = []
        bot.command_queue = SimpleNamespace(stop=lambda: bot.stopped.append(True))
        bot.gateway = _FakeGateway()
        bot._disconnect_task = None
        return bot

    async def test_shutdown_keeps_disconnect_task_until_done(self) -> None:
        bot = self._bot()

        bot._request_shutdown()
        task = bot._disconnect_task
        self.assertIsNotNone(task)
        await task

        self.assertEqual(bot.gateway.disconnects, 1)
        self.assertEqual(bot.stopped, [True])

    async def test_repeated_signal_disconnects_once(self) -> None:
        bot = self._bot()

        bot._request_shutdown()
        bot._request_shutdown()
        await bot._disconnect_task

        self.assertEqual(bot.gateway.disconnects, 1)
        self.assertEqual(len(bot.stopped), 2)


if __name__ == "__main__":
    unittest.main()
