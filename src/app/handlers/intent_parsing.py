from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from src.app.commands import SummaryLength, parse_length

_COMMAND_RE = re.compile(r"^/(?P<name>[A-Za-z0-9_]+)(?:@(?P<target>[A-Za-z0-9_]+))?$")
_USERNAME_RE = re.compile(r"^@?(?P<username>[A-Za-z0-9_]{3,32})$")


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: tuple[str, ...]
    raw_args: str


@dataclass(frozen=True)
class SummarizeRequest:
    count: int
    length: SummaryLength
    username: Optional[str] = None


@dataclass(frozen=True)
class AskRequest:
    count: int
    question: str


def parse_command(text: str, bot_username: str = "") -> ParsedCommand | None:
    stripped = (text or "").strip()
    if not stripped.startswith("/"):
        return None
    parts = stripped.split(maxsplit=1)
    match = _COMMAND_RE.match(parts[0])
    if not match:
        return None
    target = match.group("target")
    if target and bot_username and target.lower() != bot_username.lower():
        return None
    raw_args = parts[1].strip() if len(parts) > 1 else ""
    return ParsedCommand(name=match.group("name").lower(), args=tuple(raw_args.split()), raw_args=raw_args)


def is_command_text(text: str) -> bool:
    return (text or "").lstrip().startswith("/")


def parse_count(value: str, max_count: int) -> int | None:
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    if count <= 0:
        return None
    return min(count, max_count)


def parse_username(value: str) -> str | None:
    if not value.startswith("@"):
        return None
    match = _USERNAME_RE.match(value)
    if not match:
        return None
    return match.group("username")


def parse_summarize_args(
    args: tuple[str, ...],
    default_length: SummaryLength,
    max_count: int,
) -> SummarizeRequest | None:
    if not args:
        return None
    count = parse_count(args[0], max_count)
    if count is None:
        return None

    length: SummaryLength | None = None
    username: str | None = None
    for token in args[1:]:
        parsed_length = parse_length(token)
        if parsed_length is not None and length is None:
            length = parsed_length
            continue
        parsed_username = parse_username(token)
        if parsed_username is not None and username is None:
            username = parsed_username
            continue
        return None
    return SummarizeRequest(count=count, length=length or default_length, username=username)


def parse_ask_args(args: tuple[str, ...], default_count: int, max_count: int) -> AskRequest | None:
    if not args:
        return None
    count = default_count
    question_tokens = list(args)
    leading_count = parse_count(args[0], max_count)
    if leading_count is not None:
        count = leading_count
        question_tokens = question_tokens[1:]
    question = " ".join(question_tokens).strip()
    if not question:
        return None
    return AskRequest(count=min(count, max_count), question=question)


def parse_tldr_args(args: tuple[str, ...], default_length: SummaryLength) -> SummaryLength | None:
    if not args:
        return default_length
    if len(args) > 1:
        return None
    return parse_length(args[0])
