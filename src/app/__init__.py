from __future__ import annotations

__all__ = ["DigestBot"]


def __getattr__(name: str):
    if name == "DigestBot":
        from src.app.bot_orchestrator import DigestBot

        return DigestBot
    raise AttributeError(name)
