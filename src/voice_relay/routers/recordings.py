"""Routes that run uploaded recordings through the relay pipeline."""

from __future__ import annotations

import base64
import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from ..config import Settings
from ..errors import RelayError, UploadTooLarge, ValidationError
from ..pipeline import PipelineOrchestrator
from ..pipeline.types import utc_timestamp
from ..schemas.recordings import (
    ErrorResponse,
    HealthResponse,
    MergedAudioResponse,
    MultipleAudioResponse,
    ProcessRecordingResponse,
    SingleAudioResponse,
)
from ..services.stt_service import DEFAULT_MIME_TYPE, SttOptions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["recordings"])

_READ_CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass(frozen=True)
class Recording:
    data: bytes
    mime_type: str
    filename: str


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise RuntimeError("Settings unavailable")
    return settings


def get_pipeline(request: Request) -> PipelineOrchestrator:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise RuntimeError("Pipeline orchestrator unavailable")
    return pipeline


async def read_recording(upload: Optional[UploadFile], max_bytes: int) -> Recording:
    """Read the uploaded recording, enforcing presence and the size limit."""

    if upload is None:
        raise ValidationError("No audio file provided")

    size = 0
    chunks: list[bytes] = []
    try:
        while True:
            chunk = await upload.read(_READ_CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                raise UploadTooLarge(f"Audio file exceeded {max_bytes} bytes limit")
            chunks.append(chunk)
    finally:
        await upload.close()

    if size == 0:
        raise ValidationError("Audio file was empty")

    return Recording(
        data=b"".join(chunks),
        mime_type=upload.content_type or DEFAULT_MIME_TYPE,
        filename=upload.filename or "recording.wav",
    )


def _stt_options(
    language: Optional[str],
    language_form: Optional[str],
    stt_model: Optional[str],
    stt_model_form: Optional[str],
) -> SttOptions:
    # Query string wins over form fields
    return SttOptions(
        language_code=language or language_form or None,
        model=stt_model or stt_model_form or None,
    )


def _error_response(request_id: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, RelayError):
        status_code = exc.status_code
    else:
        logger.exception("[%s] Unexpected error processing recording", request_id)
        status_code = 500
    body = ErrorResponse(requestId=request_id, error=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _error_event(request_id: str, error: str) -> dict[str, Optional[str]]:
    body = ErrorResponse(requestId=request_id, error=error)
    return {"event": "error", "data": body.model_dump_json()}


@router.post(
    "/process-recording",
    response_model=ProcessRecordingResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def process_recording(
    audio: Optional[UploadFile] = File(None),
    language: Optional[str] = Query(None),
    sttModel: Optional[str] = Query(None),
    language_form: Optional[str] = Form(None, alias="language"),
    stt_model_form: Optional[str] = Form(None, alias="sttModel"),
    settings: Settings = Depends(get_app_settings),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
) -> Any:
    """Return transcript, reply text and every sentence clip in one response."""

    request_id = str(uuid.uuid4())
    try:
        recording = await read_recording(audio, settings.max_upload_bytes)
        logger.info(
            "[%s] Received file: %s (%d bytes)",
            request_id,
            recording.filename,
            len(recording.data),
        )
        result = await pipeline.run(
            recording.data,
            mime_type=recording.mime_type,
            options=_stt_options(language, language_form, sttModel, stt_model_form),
            request_id=request_id,
        )
    except Exception as exc:
        return _error_response(request_id, exc)

    return ProcessRecordingResponse.from_result(result)


@router.post("/process-recording-stream", response_model=None)
async def process_recording_stream(
    audio: Optional[UploadFile] = File(None),
    language: Optional[str] = Query(None),
    sttModel: Optional[str] = Query(None),
    language_form: Optional[str] = Form(None, alias="language"),
    stt_model_form: Optional[str] = Form(None, alias="sttModel"),
    settings: Settings = Depends(get_app_settings),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
) -> EventSourceResponse:
    """Stream stage events and sentence clips through Server-Sent Events."""

    request_id = str(uuid.uuid4())
    options = _stt_options(language, language_form, sttModel, stt_model_form)

    try:
        recording: Optional[Recording] = await read_recording(
            audio, settings.max_upload_bytes
        )
        validation_error: Optional[ValidationError] = None
    except ValidationError as exc:
        recording = None
        validation_error = exc

    async def event_publisher() -> AsyncGenerator[dict[str, Optional[str]], None]:
        if recording is None:
            logger.warning("[%s] Rejected upload: %s", request_id, validation_error)
            yield _error_event(request_id, str(validation_error))
            return

        logger.info(
            "[%s] Received file: %s (%d bytes)",
            request_id,
            recording.filename,
            len(recording.data),
        )
        async for event in pipeline.stream(
            recording.data,
            mime_type=recording.mime_type,
            options=options,
            request_id=request_id,
        ):
            yield event.asdict()

    return EventSourceResponse(
        event_publisher(),
        headers={"Cache-Control": "no-cache"},
    )


@router.post(
    "/process-recording-audio",
    response_model=SingleAudioResponse | MultipleAudioResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def process_recording_audio(
    audio: Optional[UploadFile] = File(None),
    response_format: Literal["single", "multiple"] = Query("single", alias="format"),
    language: Optional[str] = Query(None),
    sttModel: Optional[str] = Query(None),
    language_form: Optional[str] = Form(None, alias="language"),
    stt_model_form: Optional[str] = Form(None, alias="sttModel"),
    settings: Settings = Depends(get_app_settings),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
) -> Any:
    """Return only the synthesized audio: the first clip, or all of them."""

    request_id = str(uuid.uuid4())
    try:
        recording = await read_recording(audio, settings.max_upload_bytes)
        audios = await pipeline.run_audio_only(
            recording.data,
            mime_type=recording.mime_type,
            options=_stt_options(language, language_form, sttModel, stt_model_form),
            request_id=request_id,
        )
    except Exception as exc:
        return _error_response(request_id, exc)

    if response_format == "single" and audios:
        return SingleAudioResponse(requestId=request_id, ttsBase64=audios[0])
    return MultipleAudioResponse(requestId=request_id, count=len(audios), audios=audios)


@router.post(
    "/process-recording-audio-merged",
    response_model=MergedAudioResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def process_recording_audio_merged(
    audio: Optional[UploadFile] = File(None),
    language: Optional[str] = Query(None),
    sttModel: Optional[str] = Query(None),
    language_form: Optional[str] = Form(None, alias="language"),
    stt_model_form: Optional[str] = Form(None, alias="sttModel"),
    settings: Settings = Depends(get_app_settings),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
) -> Any:
    """Return every sentence clip merged into one WAV container."""

    request_id = str(uuid.uuid4())
    try:
        recording = await read_recording(audio, settings.max_upload_bytes)
        merged = await pipeline.run_merged(
            recording.data,
            mime_type=recording.mime_type,
            options=_stt_options(language, language_form, sttModel, stt_model_form),
            request_id=request_id,
        )
    except Exception as exc:
        return _error_response(request_id, exc)

    encoded = base64.b64encode(merged.container).decode("ascii")
    return MergedAudioResponse.from_merged(merged, encoded)


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def healthcheck() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=utc_timestamp())


__all__ = ["get_pipeline", "read_recording", "router"]
