"""Text-to-speech client for the Sarvam REST API."""

from __future__ import annotations

import base64
import json
import logging
from typing import Optional

import httpx

from ..config import Settings
from ..errors import UpstreamCallError, UpstreamTimeout
from .http_client import PooledHttpClient, extract_error_detail

logger = logging.getLogger(__name__)


class TextToSpeechClient(PooledHttpClient):
    """
    Synthesize one sentence per call.

    The API answers either with JSON carrying base64 clips under ``audios``
    or with the raw audio body; both are normalized to a base64 string.
    """

    service_name = "tts"

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(settings.tts_timeout, http_client=http_client)
        self._settings = settings

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.tts_api_key:
            headers["api-subscription-key"] = self._settings.tts_api_key.get_secret_value()
        return headers

    def _build_payload(
        self,
        text: str,
        speaker: Optional[str],
        language_code: Optional[str],
    ) -> dict[str, object]:
        return {
            "text": text,
            "target_language_code": language_code or self._settings.tts_language_code,
            "speaker": speaker or self._settings.tts_speaker,
            "enable_preprocessing": self._settings.tts_enable_preprocessing,
        }

    async def synthesize(
        self,
        text: str,
        *,
        speaker: Optional[str] = None,
        language_code: Optional[str] = None,
    ) -> str:
        """Return base64-encoded audio for ``text``."""

        payload = self._build_payload(text, speaker, language_code)
        logger.info('Converting text to speech (speaker=%s): "%s"', payload["speaker"], text[:80])

        client = await self._get_http_client()
        try:
            response = await client.post(
                str(self._settings.tts_url),
                headers=self._headers,
                json=payload,
                timeout=self._settings.tts_timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(self.service_name, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamCallError(self.service_name, str(exc)) from exc

        if response.status_code >= 400:
            detail = extract_error_detail(response.content, "TTS API")
            logger.error("TTS API error %s: %s", response.status_code, detail)
            raise UpstreamCallError(self.service_name, detail)

        audio_base64 = self._decode_body(response.content)
        logger.info("Synthesized audio, base64 length %d", len(audio_base64))
        return audio_base64

    @staticmethod
    def _decode_body(raw: bytes) -> str:
        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            body = None

        if isinstance(body, dict):
            audios = body.get("audios")
            if isinstance(audios, list) and audios and isinstance(audios[0], str):
                return audios[0]
        if not raw:
            raise UpstreamCallError("tts", "TTS API returned an empty body")
        return base64.b64encode(raw).decode("ascii")


__all__ = ["TextToSpeechClient"]
