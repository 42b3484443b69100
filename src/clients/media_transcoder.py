from __future__ import annotations

import logging
import subprocess
from pathlib import Path


LOGGER = logging.getLogger(__name__)


class MediaTranscoder:
    def __init__(self, ffmpeg_binary: str = "ffmpeg", timeout_seconds: int = 300):
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout_seconds = timeout_seconds

    def has_ffmpeg(self) -> bool:
        try:
            result = subprocess.run([self.ffmpeg_binary, "-version"], capture_output=True, text=True, timeout=8)
        except (OSError, subprocess.SubprocessError):
            return False
        return result.returncode == 0

    def video_to_audio(self, input_path: Path, output_path: Path) -> bool:
        """Extract a mono 16 kHz mp3 track, small enough for hosted transcription."""
        if not self.has_ffmpeg():
            LOGGER.warning("ffmpeg is not installed or not available in PATH")
            return False

        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-i",
            str(input_path),
            "-vn",
            "-ac",
            "1",
            "-ar",
            "16000",
            "-b:a",
            "32k",
            str(output_path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_seconds)
        except (OSError, subprocess.SubprocessError) as exc:
            LOGGER.warning("Audio extraction failed: %s", exc)
            return False
        if result.returncode != 0:
            LOGGER.warning("ffmpeg video->audio conversion failed: %s", result.stderr.strip()[-500:])
            return False
        return Path(output_path).exists() and Path(output_path).stat().st_size > 0
