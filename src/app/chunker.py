"""Packs chronological chat lines into size-bounded completion prompts."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from src.app.commands import PromptPayload
from src.app.prompts import CLOSING_MARKER

UNKNOWN_SENDER = "Unknown"
MIN_SEGMENT_CHARS = 200


@dataclass(frozen=True)
class PromptTemplate:
    header: str
    closing: str = CLOSING_MARKER


def render_line(index: int, sender: str, text: str) -> str:
    return f'{index}. [@{sender or UNKNOWN_SENDER}]: "{text}"\n'


def split_long_text(text: str, limit: int) -> list[str]:
    """Split ``text`` at whitespace into pieces no longer than ``limit``.

    Words longer than ``limit`` are cut hard. Blank input yields no pieces.
    """
    limit = max(1, int(limit))
    words = (text or "").split()
    pieces: list[str] = []
    current = ""
    for word in words:
        while len(word) > limit:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:limit])
            word = word[limit:]
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) > limit:
            pieces.append(current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


class PromptChunker:
    def __init__(self, budget_chars: int):
        if budget_chars < 1:
            raise ValueError("Prompt budget must be positive.")
        self.budget_chars = int(budget_chars)

    def pack(
        self,
        entries: Sequence[tuple[str, str]],
        template: PromptTemplate,
        max_output_tokens: int,
    ) -> list[PromptPayload]:
        """Return payloads covering every entry in order.

        A payload is closed once the next line would push it past the budget.
        A line that is oversized on its own still gets a payload of its own.
        """
        payloads: list[PromptPayload] = []
        if not entries:
            return payloads

        fixed_size = len(template.header) + len(template.closing)
        body = ""
        index = 0
        for sender, text in entries:
            line = render_line(index + 1, sender, text)
            if body and fixed_size + len(body) + len(line) > self.budget_chars:
                payloads.append(self._close(template, body, max_output_tokens))
                index = 0
                line = render_line(1, sender, text)
                body = ""
            body += line
            index += 1
        payloads.append(self._close(template, body, max_output_tokens))
        return payloads

    def segment_limit(self, template: PromptTemplate, sender: str) -> int:
        overhead = len(template.header) + len(template.closing) + len(render_line(999, sender, ""))
        return max(MIN_SEGMENT_CHARS, self.budget_chars - overhead)

    def _close(self, template: PromptTemplate, body: str, max_output_tokens: int) -> PromptPayload:
        return PromptPayload(
            instructions=template.header,
            content=body + template.closing,
            max_output_tokens=max_output_tokens,
        )
