from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union


class SummaryLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


@dataclass(frozen=True)
class LengthBudget:
    max_output_tokens: int
    target_words: int


DEFAULT_LENGTH_POLICY: dict[SummaryLength, LengthBudget] = {
    SummaryLength.SHORT: LengthBudget(max_output_tokens=256, target_words=50),
    SummaryLength.MEDIUM: LengthBudget(max_output_tokens=512, target_words=100),
    SummaryLength.LONG: LengthBudget(max_output_tokens=1024, target_words=200),
}


def parse_length(value: str) -> SummaryLength | None:
    normalized = (value or "").strip().lower()
    for length in SummaryLength:
        if length.value == normalized:
            return length
    return None


def build_length_policy(budgets: Mapping[str, tuple[int, int]] | None = None) -> dict[SummaryLength, LengthBudget]:
    policy = dict(DEFAULT_LENGTH_POLICY)
    for name, (tokens, words) in (budgets or {}).items():
        length = parse_length(name)
        if length is None:
            continue
        policy[length] = LengthBudget(max_output_tokens=int(tokens), target_words=int(words))
    return policy


@dataclass(frozen=True)
class PromptPayload:
    instructions: str
    content: str
    max_output_tokens: int

    @property
    def text(self) -> str:
        return self.instructions + self.content

    @property
    def size(self) -> int:
        return len(self.instructions) + len(self.content)

    def as_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.instructions},
            {"role": "user", "content": self.content},
        ]


@dataclass(frozen=True)
class Summarize:
    chat_id: int
    recipient_id: int
    message_count: int
    length: SummaryLength
    sender_filter: Optional[str] = None


@dataclass(frozen=True)
class SummarizeOne:
    chat_id: int
    recipient_id: int
    message_id: int
    length: SummaryLength


@dataclass(frozen=True)
class Ask:
    chat_id: int
    recipient_id: int
    question: str
    message_count: int
    length: SummaryLength


@dataclass(frozen=True)
class SendPrompt:
    recipient_id: int
    payload: PromptPayload


Command = Union[Summarize, SummarizeOne, Ask, SendPrompt]


def describe_command(command: Command) -> str:
    if isinstance(command, Summarize):
        scope = f" from @{command.sender_filter}" if command.sender_filter else ""
        return f"Summarize({command.message_count} messages{scope} in {command.chat_id})"
    if isinstance(command, SummarizeOne):
        return f"SummarizeOne(message {command.message_id} in {command.chat_id})"
    if isinstance(command, Ask):
        return f"Ask({command.message_count} messages in {command.chat_id})"
    if isinstance(command, SendPrompt):
        return f"SendPrompt({command.payload.size} chars to {command.recipient_id})"
    return type(command).__name__
