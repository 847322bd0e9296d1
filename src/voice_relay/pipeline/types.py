"""Type definitions for the relay pipeline."""

from __future__ import annotations

import enum
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional, Protocol

from ..services.stt_service import SttOptions
from ..services.text_segmenter import Sentence
from ..streaming import ReassembledMessage

SseEvent = dict[str, Optional[str]]


class SpeechToText(Protocol):
    async def transcribe(
        self, audio: bytes, mime_type: str = ..., options: Optional[SttOptions] = ...
    ) -> str:
        ...


class ReplyStream(Protocol):
    def stream_messages(
        self, text: str, session_id: str
    ) -> AsyncIterator[ReassembledMessage]:
        ...


class TextToSpeech(Protocol):
    async def synthesize(self, text: str) -> str:
        ...


class RunStage(str, enum.Enum):
    RECEIVED = "received"
    STT_DONE = "stt_done"
    BACKEND_DONE = "backend_done"
    ACCUMULATED = "accumulated"
    SEGMENTED = "segmented"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    FAILED = "failed"


_STAGE_ORDER = [
    RunStage.RECEIVED,
    RunStage.STT_DONE,
    RunStage.BACKEND_DONE,
    RunStage.ACCUMULATED,
    RunStage.SEGMENTED,
    RunStage.SYNTHESIZING,
    RunStage.COMPLETE,
]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PipelineRun:
    """Lifecycle of one request; stages only ever move forward."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    stage: RunStage = RunStage.RECEIVED
    synthesized: int = 0
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.stage in (RunStage.COMPLETE, RunStage.FAILED)

    def advance(self, stage: RunStage) -> None:
        if self.finished:
            raise RuntimeError(f"Run {self.request_id} already {self.stage.value}")
        if stage is RunStage.FAILED:
            raise ValueError("Use fail() to terminate a run")
        if _STAGE_ORDER.index(stage) < _STAGE_ORDER.index(self.stage):
            raise RuntimeError(
                f"Run {self.request_id} cannot move from {self.stage.value} to {stage.value}"
            )
        self.stage = stage

    def fail(self, error: BaseException | str) -> None:
        self.stage = RunStage.FAILED
        self.error = str(error)


@dataclass(frozen=True)
class StageEvent:
    """One progress event surfaced to the caller in progressive mode."""

    name: str
    data: dict[str, Any]

    def asdict(self) -> SseEvent:
        return {"event": self.name, "data": json.dumps(self.data, ensure_ascii=False)}


@dataclass(frozen=True)
class SentenceAudio:
    sentence: Sentence
    audio_base64: str


@dataclass
class PipelineResult:
    request_id: str
    stt_text: str
    stt_options: dict[str, str]
    webhook_response_count: int
    accumulated_text: str
    results: list[SentenceAudio] = field(default_factory=list)

    @property
    def audios(self) -> list[str]:
        return [item.audio_base64 for item in self.results]


@dataclass(frozen=True)
class MergedAudio:
    request_id: str
    count: int
    container: bytes


__all__ = [
    "MergedAudio",
    "PipelineResult",
    "PipelineRun",
    "ReplyStream",
    "RunStage",
    "SentenceAudio",
    "SpeechToText",
    "SseEvent",
    "StageEvent",
    "TextToSpeech",
    "utc_timestamp",
]
