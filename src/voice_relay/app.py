"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .logging_handlers import DateStampedFileHandler, cleanup_old_logs
from .pipeline import PipelineOrchestrator
from .routers.recordings import router as recordings_router
from .services.stt_service import SpeechToTextClient
from .services.tts_service import TextToSpeechClient
from .services.webhook_service import WebhookClient

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_logging(settings: Settings) -> None:
    """Configure root logging from the relay settings."""

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = []

    if settings.log_dir:
        file_handler = DateStampedFileHandler(settings.log_dir, prefix="relay")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Always add console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logging.getLogger("voice_relay").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Quiet down noisy third-party libraries
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    if settings.log_dir:
        cleanup_old_logs(
            settings.log_dir,
            settings.log_retention_hours,
            logger=logging.getLogger("voice_relay.logging"),
        )


def create_app(
    settings: Optional[Settings] = None,
    *,
    pipeline: Optional[PipelineOrchestrator] = None,
) -> FastAPI:
    # Load .env before settings so LOG_* values are honoured
    load_dotenv()
    settings = settings or get_settings()
    _configure_logging(settings)
    logger = logging.getLogger(__name__)

    stt_client = SpeechToTextClient(settings)
    webhook_client = WebhookClient(settings)
    tts_client = TextToSpeechClient(settings)

    if pipeline is None:
        pipeline = PipelineOrchestrator(settings, stt_client, webhook_client, tts_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("STT URL: %s", settings.stt_url)
        logger.info("TTS URL: %s", settings.tts_url)
        logger.info("Webhook URL: %s", settings.webhook_url)
        if settings.webhook_url is None:
            logger.warning("WEBHOOK_URL is not configured; recordings will fail")
        try:
            yield
        finally:
            for client in (stt_client, webhook_client, tts_client):
                try:
                    await client.aclose()
                except Exception as exc:
                    logger.warning("Error closing %s client: %s", client.service_name, exc)

    app = FastAPI(
        title="Voice Relay",
        version="0.1.0",
        description="Relay recordings through STT, a conversational webhook and TTS.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(recordings_router)

    @app.get("/", tags=["meta"])
    async def root() -> dict[str, object]:
        return {
            "message": "STT-TTS Webhook API",
            "version": app.version,
            "endpoints": {
                "health": "GET /api/health",
                "processRecording": "POST /api/process-recording",
                "processRecordingStream": "POST /api/process-recording-stream",
                "processRecordingAudio": "POST /api/process-recording-audio",
                "processRecordingAudioMerged": "POST /api/process-recording-audio-merged",
            },
        }

    @app.exception_handler(404)
    async def not_found(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Endpoint not found"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(exc) or "Internal server error"},
        )

    return app


__all__ = ["create_app"]
