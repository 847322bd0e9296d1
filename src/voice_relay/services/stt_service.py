"""Speech-to-text client for the Sarvam REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import Settings
from ..errors import EmptyTranscriptionError, UpstreamCallError, UpstreamTimeout
from .http_client import PooledHttpClient, extract_error_detail

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "audio/wav"
UPLOAD_FILENAME = "recording.wav"


@dataclass(frozen=True)
class SttOptions:
    """Per-request overrides; ``None`` falls back to configuration."""

    language_code: Optional[str] = None
    model: Optional[str] = None

    def as_dict(self) -> dict[str, str]:
        options: dict[str, str] = {}
        if self.language_code:
            options["language_code"] = self.language_code
        if self.model:
            options["model"] = self.model
        return options


class SpeechToTextClient(PooledHttpClient):
    """Transcribe one uploaded recording per call."""

    service_name = "stt"

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(settings.stt_timeout, http_client=http_client)
        self._settings = settings

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._settings.stt_api_key:
            headers["api-subscription-key"] = self._settings.stt_api_key.get_secret_value()
        return headers

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str = DEFAULT_MIME_TYPE,
        options: Optional[SttOptions] = None,
    ) -> str:
        """Return the transcript for ``audio`` or raise an upstream error."""

        options = options or SttOptions()
        model = options.model or self._settings.stt_model
        language_code = options.language_code or self._settings.stt_language_code

        logger.info(
            "Converting %d bytes of audio to text (model=%s, language=%s)",
            len(audio),
            model,
            language_code,
        )

        client = await self._get_http_client()
        try:
            response = await client.post(
                str(self._settings.stt_url),
                headers=self._headers,
                data={"model": model, "language_code": language_code},
                files={"file": (UPLOAD_FILENAME, audio, mime_type or DEFAULT_MIME_TYPE)},
                timeout=self._settings.stt_timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(self.service_name, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamCallError(self.service_name, str(exc)) from exc

        if response.status_code >= 400:
            detail = extract_error_detail(response.content, "STT API")
            logger.error("STT API error %s: %s", response.status_code, detail)
            raise UpstreamCallError(self.service_name, detail)

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamCallError(self.service_name, "STT API returned invalid JSON") from exc

        text = None
        if isinstance(body, dict):
            text = body.get("transcript") or body.get("text") or body.get("result")
        if not isinstance(text, str) or not text.strip():
            raise EmptyTranscriptionError()

        logger.info('Transcript: "%s"', text)
        return text


__all__ = ["SpeechToTextClient", "SttOptions"]
