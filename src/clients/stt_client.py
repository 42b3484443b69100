from __future__ import annotations

import logging
from pathlib import Path

from src.clients.openai_client import OpenAIClient
from src.core.config import Settings
from src.core.errors import ProviderError


LOGGER = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "faster_whisper")


class SttClient:
    def __init__(self, settings: Settings, openai_client: OpenAIClient):
        self.provider = settings.stt_provider
        self.model_name = settings.stt_model
        self.device = settings.stt_device
        self.compute_type = settings.stt_compute_type
        self.openai_client = openai_client
        self._model = None

    def is_enabled(self) -> bool:
        return self.provider in SUPPORTED_PROVIDERS

    def transcribe_file(self, file_path: str | Path) -> str:
        if not self.is_enabled():
            raise ProviderError(f"STT provider disabled ({self.provider or 'none'})")

        if self.provider == "openai":
            transcript = self.openai_client.audio_transcription(file_path)
        else:
            transcript = self._transcribe_local(Path(file_path))

        transcript = (transcript or "").strip()
        if not transcript:
            raise ProviderError("Transcription produced no text")
        return transcript

    def _transcribe_local(self, path: Path) -> str:
        model = self._ensure_model()
        try:
            segments, _info = model.transcribe(
                str(path),
                beam_size=5,
                vad_filter=True,
                condition_on_previous_text=True,
            )
            lines = [seg.text.strip() for seg in segments if seg.text and seg.text.strip()]
        except Exception as exc:
            raise ProviderError(f"Transcription failed: {exc}") from exc
        return " ".join(lines)

    def _ensure_model(self):
        if self._model is not None:
            return self._model

        try:
            from faster_whisper import WhisperModel
        except ImportError as exc:
            raise ProviderError(f"faster-whisper import failed: {exc}") from exc

        device = "cuda" if self.device in {"auto", "cuda"} else "cpu"
        try:
            self._model = WhisperModel(self.model_name, device=device, compute_type=self._resolve_compute_type(device))
        except Exception as exc:
            if device != "cuda":
                raise ProviderError(f"Model load failed: {exc}") from exc
            LOGGER.warning("Could not load %s on CUDA (%s); falling back to CPU", self.model_name, exc)
            try:
                self._model = WhisperModel(self.model_name, device="cpu", compute_type="int8")
            except Exception as cpu_exc:
                raise ProviderError(f"Model load failed: {cpu_exc}") from cpu_exc
        return self._model

    def _resolve_compute_type(self, device: str) -> str:
        if self.compute_type != "auto":
            return self.compute_type
        return "float16" if device == "cuda" else "int8"
