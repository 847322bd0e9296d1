"""Error kinds raised by the relay pipeline."""

from __future__ import annotations

from typing import Any

from fastapi import status


class RelayError(RuntimeError):
    """Base error for request-scoped pipeline failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: Any):
        super().__init__(str(detail))
        self.detail = detail


class ValidationError(RelayError):
    """Raised when the uploaded recording is missing or unusable."""

    status_code = status.HTTP_400_BAD_REQUEST


class UploadTooLarge(ValidationError):
    """Raised when the uploaded recording exceeds the configured limit."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class UpstreamCallError(RelayError):
    """Wrap transport or API failures when calling an external collaborator."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, service: str, detail: Any):
        super().__init__(detail)
        self.service = service

    def __str__(self) -> str:
        return f"{self.service.upper()} call failed: {self.detail}"


class UpstreamTimeout(UpstreamCallError):
    """Raised when a collaborator call exceeds its deadline."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class EmptyTranscriptionError(UpstreamCallError):
    """Raised when speech-to-text returns no usable transcript."""

    def __init__(self, detail: Any = "No transcript returned from STT API"):
        super().__init__("stt", detail)


class StreamTransportError(UpstreamCallError):
    """Raised when the backend response stream fails mid-read."""

    def __init__(self, detail: Any):
        super().__init__("webhook", detail)


__all__ = [
    "EmptyTranscriptionError",
    "RelayError",
    "StreamTransportError",
    "UploadTooLarge",
    "UpstreamCallError",
    "UpstreamTimeout",
    "ValidationError",
]
