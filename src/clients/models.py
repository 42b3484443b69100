from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

TRANSCRIBABLE_KINDS = frozenset({"audio", "video"})


@dataclass(frozen=True)
class AttachmentRef:
    kind: str
    mime_type: str
    file_name: str


@dataclass(frozen=True)
class SelfIdentity:
    user_id: int
    username: str


@dataclass(frozen=True)
class ChatMessage:
    chat_id: int
    message_id: int
    sender_id: Optional[int] = None
    sender_username: Optional[str] = None
    sender_display_name: str = ""
    sender_is_bot: bool = False
    text: str = ""
    is_group: bool = False
    is_private: bool = False
    outgoing: bool = False
    reply_to_message_id: Optional[int] = None
    is_forwarded: bool = False
    attachment: Optional[AttachmentRef] = None
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def sender_label(self) -> str:
        return self.sender_username or self.sender_display_name or "Unknown"

    @property
    def has_transcribable_media(self) -> bool:
        return self.attachment is not None and self.attachment.kind in TRANSCRIBABLE_KINDS


def extract_attachment_ref(message: Any) -> AttachmentRef | None:
    """Classify the media carried by a Telethon message, if any."""
    if message is None:
        return None

    file_info = getattr(message, "file", None)
    mime = (getattr(file_info, "mime_type", None) or "").lower()
    name = (getattr(file_info, "name", None) or "").strip()

    if getattr(message, "voice", None):
        return AttachmentRef(kind="audio", mime_type=mime or "audio/ogg", file_name=name or "voice_note.ogg")

    if getattr(message, "audio", None):
        return AttachmentRef(kind="audio", mime_type=mime or "audio/mpeg", file_name=name or "audio.mp3")

    # Animations and video stickers carry a video attribute but no sound.
    if getattr(message, "gif", None):
        return AttachmentRef(kind="image", mime_type=mime or "video/mp4", file_name=name)

    if getattr(message, "sticker", None):
        return AttachmentRef(kind="document", mime_type=mime, file_name=name)

    if getattr(message, "video_note", None):
        return AttachmentRef(kind="video", mime_type=mime or "video/mp4", file_name=name or "video_note.mp4")

    if getattr(message, "video", None):
        return AttachmentRef(kind="video", mime_type=mime or "video/mp4", file_name=name or "video.mp4")

    if getattr(message, "photo", None):
        return AttachmentRef(kind="image", mime_type="image/jpeg", file_name=name)

    if not getattr(message, "document", None):
        return None
    if mime.startswith("audio/"):
        return AttachmentRef(kind="audio", mime_type=mime, file_name=name)
    if mime.startswith("video/") or name.lower().endswith(".mp4"):
        return AttachmentRef(kind="video", mime_type=mime or "video/mp4", file_name=name)
    if mime.startswith("image/"):
        return AttachmentRef(kind="image", mime_type=mime, file_name=name)
    return AttachmentRef(kind="document", mime_type=mime, file_name=name)
