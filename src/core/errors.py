from __future__ import annotations


class DigestBotError(Exception):
    """Base error for the digest bot."""


class ProviderError(DigestBotError):
    """Raised when the completion or transcription provider fails."""


class TransientProviderError(ProviderError):
    """Raised for rate limits and recoverable network failures; the command is retried."""


class PermanentCommandError(DigestBotError):
    """Raised when a command can never succeed and must be dropped."""


class DeliveryError(DigestBotError):
    """Raised when a message cannot be delivered to its recipient."""


class StorageError(DigestBotError):
    """Raised when the message ledger cannot be read or written."""
