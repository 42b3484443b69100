from __future__ import annotations

import unittest
from types import SimpleNamespace

from src.clients.models import ChatMessage, extract_attachment_ref


def _raw(**media) -> SimpleNamespace:
    values = {
        "voice": None,
        "audio": None,
        "video_note": None,
        "video": None,
        "photo": None,
        "gif": None,
        "sticker": None,
        "document": None,
        "file": None,
    }
    values.update(media)
    return SimpleNamespace(**values)


def _file(mime: str = "", name: str = "") -> SimpleNamespace:
    return SimpleNamespace(mime_type=mime, name=name)


class ExtractAttachmentRefTests(unittest.TestCase):
    def test_text_only_message_has_no_attachment(self) -> None:
        self.assertIsNone(extract_attachment_ref(_raw()))
        self.assertIsNone(extract_attachment_ref(None))

    def test_voice_and_audio_are_audio(self) -> None:
        voice = extract_attachment_ref(_raw(voice=object(), document=object(), file=_file("audio/ogg")))
        song = extract_attachment_ref(_raw(audio=object(), document=object(), file=_file("", "song.mp3")))

        self.assertEqual((voice.kind, voice.mime_type), ("audio", "audio/ogg"))
        self.assertEqual(voice.file_name, "voice_note.ogg")
        self.assertEqual((song.kind, song.mime_type, song.file_name), ("audio", "audio/mpeg", "song.mp3"))

    def test_round_video_and_video_are_video(self) -> None:
        note = extract_attachment_ref(_raw(video_note=object(), document=object(), file=_file("video/mp4")))
        clip = extract_attachment_ref(_raw(video=object(), document=object(), file=_file("video/quicktime", "a.mov")))

        self.assertEqual(note.kind, "video")
        self.assertEqual((clip.kind, clip.mime_type), ("video", "video/quicktime"))

    def test_animation_is_not_treated_as_video(self) -> None:
        gif = extract_attachment_ref(
            _raw(gif=object(), video=object(), document=object(), file=_file("video/mp4", "giphy.mp4"))
        )

        self.assertEqual(gif.kind, "image")
        self.assertFalse(ChatMessage(chat_id=1, message_id=1, attachment=gif).has_transcribable_media)

    def test_video_sticker_is_a_document(self) -> None:
        sticker = extract_attachment_ref(
            _raw(sticker=object(), video=object(), document=object(), file=_file("video/webm", "sticker.webm"))
        )

        self.assertEqual(sticker.kind, "document")
        self.assertFalse(ChatMessage(chat_id=1, message_id=1, attachment=sticker).has_transcribable_media)

    def test_photo_is_image(self) -> None:
        self.assertEqual(extract_attachment_ref(_raw(photo=object())).kind, "image")

    def test_documents_are_classified_by_mime_and_name(self) -> None:
        cases = [
            (_file("audio/x-wav", "memo.wav"), "audio"),
            (_file("", "recording.MP4"), "video"),
            (_file("image/png", "shot.png"), "image"),
            (_file("application/pdf", "notes.pdf"), "document"),
        ]
        for file_info, expected in cases:
            with self.subTest(file=file_info.name):
                self.assertEqual(extract_attachment_ref(_raw(document=object(), file=file_info)).kind, expected)


class ChatMessageTests(unittest.TestCase):
    def test_sender_label_prefers_username_then_display_name(self) -> None:
        self.assertEqual(ChatMessage(chat_id=1, message_id=1, sender_username="alice").sender_label, "alice")
        self.assertEqual(ChatMessage(chat_id=1, message_id=1, sender_display_name="Alice B").sender_label, "Alice B")
        self.assertEqual(ChatMessage(chat_id=1, message_id=1).sender_label, "Unknown")

    def test_only_audio_and_video_are_transcribable(self) -> None:
        voice = extract_attachment_ref(_raw(voice=object()))
        photo = extract_attachment_ref(_raw(photo=object()))

        self.assertTrue(ChatMessage(chat_id=1, message_id=1, attachment=voice).has_transcribable_media)
        self.assertFalse(ChatMessage(chat_id=1, message_id=1, attachment=photo).has_transcribable_media)
        self.assertFalse(ChatMessage(chat_id=1, message_id=1).has_transcribable_media)


if __name__ == "__main__":
    unittest.main()
