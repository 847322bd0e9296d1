"""Shared httpx plumbing for the external collaborator clients."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


def extract_error_detail(raw: bytes, service: str) -> Any:
    """Return a readable error detail from an upstream error body."""

    if not raw:
        return f"{service} returned an empty error response."
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = raw.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message") or error
        return error or payload.get("detail") or payload
    return payload


class PooledHttpClient:
    """Own one lazily created ``httpx.AsyncClient`` per collaborator."""

    service_name = "upstream"

    def __init__(
        self,
        timeout: float,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None
        self._client_lock = asyncio.Lock()

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client

        async with self._client_lock:
            if self._http_client is None:
                self._http_client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout, connect=10.0),
                    limits=httpx.Limits(
                        max_connections=50,
                        max_keepalive_connections=20,
                    ),
                )
                logger.info("Created httpx.AsyncClient for %s", self.service_name)
        return self._http_client

    async def aclose(self) -> None:
        """Close the owned HTTP client. Call on app shutdown."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
            logger.info("Closed %s HTTP client", self.service_name)


__all__ = ["PooledHttpClient", "extract_error_detail"]
