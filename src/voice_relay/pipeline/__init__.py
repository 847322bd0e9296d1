"""Pipeline orchestration: STT → webhook stream → segmentation → TTS."""

from .orchestrator import PipelineOrchestrator
from .types import (
    MergedAudio,
    PipelineResult,
    PipelineRun,
    RunStage,
    SentenceAudio,
    StageEvent,
)

__all__ = [
    "MergedAudio",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineRun",
    "RunStage",
    "SentenceAudio",
    "StageEvent",
]
