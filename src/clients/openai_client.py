from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import requests

from src.core.errors import ProviderError, TransientProviderError


LOGGER = logging.getLogger(__name__)

RETRY_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}


class OpenAIClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        transcription_model: str = "whisper-1",
        request_timeout_seconds: int = 120,
    ):
        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.model = model.strip()
        self.transcription_model = transcription_model.strip()
        self.request_timeout_seconds = max(20, int(request_timeout_seconds))

    def chat_completion(
        self,
        messages: Sequence[dict[str, str]],
        max_tokens: int,
        temperature: float = 0.5,
        top_p: float = 0.5,
    ) -> str:
        payload = {
            "model": self.model,
            "messages": list(messages),
            "max_tokens": int(max_tokens),
            "temperature": temperature,
            "top_p": top_p,
        }
        data = self._post("/chat/completions", json=payload)
        choices = data.get("choices") or []
        if not choices:
            raise ProviderError("Completion response contained no choices.")
        content = ((choices[0].get("message") or {}).get("content") or "").strip()
        if not content:
            raise ProviderError("Completion response contained no text.")
        usage = data.get("usage") or {}
        LOGGER.info(
            "Completion finished (prompt_tokens=%s, completion_tokens=%s)",
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
        )
        return content

    def audio_transcription(self, file_path: str | Path) -> str:
        path = Path(file_path)
        try:
            with path.open("rb") as audio_file:
                data = self._post(
                    "/audio/transcriptions",
                    data={"model": self.transcription_model},
                    files={"file": (path.name, audio_file)},
                )
        except OSError as exc:
            raise ProviderError(f"Could not read audio file {path}: {exc}") from exc
        text = (data.get("text") or "").strip()
        if not text:
            raise ProviderError("Transcription response contained no text.")
        return text

    def _post(self, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            response = requests.post(url, headers=headers, timeout=self.request_timeout_seconds, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientProviderError(f"Request to {endpoint} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise ProviderError(f"Request to {endpoint} failed: {exc}") from exc

        if response.status_code in RETRY_STATUS_CODES and not self._is_quota_exhausted(response):
            raise TransientProviderError(f"{endpoint} returned HTTP {response.status_code}")
        if response.status_code >= 400:
            raise ProviderError(f"{endpoint} returned HTTP {response.status_code}: {response.text[:300]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(f"{endpoint} returned malformed JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError(f"{endpoint} returned an unexpected payload")
        return data

    def _is_quota_exhausted(self, response: requests.Response) -> bool:
        if response.status_code != 429:
            return False
        try:
            body = response.json()
        except ValueError:
            return False
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return False
        return str(error.get("code") or error.get("type") or "") == "insufficient_quota"
