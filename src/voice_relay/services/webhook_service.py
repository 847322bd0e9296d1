"""Streaming client for the conversational backend webhook."""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

import httpx

from ..config import Settings
from ..errors import UpstreamCallError, UpstreamTimeout
from ..streaming import ReassembledMessage, reassemble
from .http_client import PooledHttpClient, extract_error_detail

logger = logging.getLogger(__name__)


class WebhookClient(PooledHttpClient):
    """Send a transcript and read back the newline-delimited reply stream."""

    service_name = "webhook"

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(settings.webhook_timeout, http_client=http_client)
        self._settings = settings

    @property
    def _url(self) -> str:
        if self._settings.webhook_url is None:
            raise UpstreamCallError(self.service_name, "WEBHOOK_URL is not configured")
        return str(self._settings.webhook_url)

    async def stream_messages(
        self, text: str, session_id: str
    ) -> AsyncGenerator[ReassembledMessage, None]:
        """Yield reply records in arrival order as they complete."""

        url = self._url
        payload = {"message": text, "sessionId": session_id}

        client = await self._get_http_client()
        try:
            async with client.stream(
                "POST",
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._settings.webhook_timeout,
            ) as response:
                if response.status_code >= 400:
                    body = await response.aread()
                    detail = extract_error_detail(body, "Webhook")
                    logger.error("Webhook error %s: %s", response.status_code, detail)
                    raise UpstreamCallError(self.service_name, detail)

                async for message in reassemble(response.aiter_bytes()):
                    logger.debug("[%s] Webhook record: %s", session_id, message.raw[:120])
                    yield message
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(self.service_name, "stream timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamCallError(self.service_name, str(exc)) from exc


__all__ = ["WebhookClient"]
