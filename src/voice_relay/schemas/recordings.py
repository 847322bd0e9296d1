"""Response payloads for the recording endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..pipeline import MergedAudio, PipelineResult


class SentenceResult(BaseModel):
    sentenceIndex: int
    sentence: str
    ttsBase64: str


class ProcessRecordingResponse(BaseModel):
    success: bool = True
    requestId: str
    sttText: str
    sttOptions: dict[str, str] = Field(default_factory=dict)
    webhookResponseCount: int
    accumulatedText: str
    ttsResponseCount: int
    results: list[SentenceResult]
    # Same entries as ``results``; kept for clients reading the older field
    fullResults: list[SentenceResult]

    @classmethod
    def from_result(cls, result: PipelineResult) -> "ProcessRecordingResponse":
        results = [
            SentenceResult(
                sentenceIndex=item.sentence.index,
                sentence=item.sentence.text,
                ttsBase64=item.audio_base64,
            )
            for item in result.results
        ]
        return cls(
            requestId=result.request_id,
            sttText=result.stt_text,
            sttOptions=result.stt_options,
            webhookResponseCount=result.webhook_response_count,
            accumulatedText=result.accumulated_text,
            ttsResponseCount=len(result.results),
            results=results,
            fullResults=results,
        )


class SingleAudioResponse(BaseModel):
    success: bool = True
    requestId: str
    ttsBase64: str


class MultipleAudioResponse(BaseModel):
    success: bool = True
    requestId: str
    count: int
    audios: list[str]


class MergedAudioResponse(BaseModel):
    success: bool = True
    requestId: str
    count: int
    ttsBase64: str

    @classmethod
    def from_merged(cls, merged: MergedAudio, encoded: str) -> "MergedAudioResponse":
        return cls(requestId=merged.request_id, count=merged.count, ttsBase64=encoded)


class ErrorResponse(BaseModel):
    success: bool = False
    requestId: str | None = None
    error: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str


__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "MergedAudioResponse",
    "MultipleAudioResponse",
    "ProcessRecordingResponse",
    "SentenceResult",
    "SingleAudioResponse",
]
