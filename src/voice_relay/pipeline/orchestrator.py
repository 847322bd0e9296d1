"""
Pipeline orchestration for recorded utterances.

A run moves through these stages, strictly in order:

    received → stt_done → backend_done → accumulated → segmented
             → synthesizing(0..N) → complete        (or failed)

Aggregate entry points (``run``, ``run_audio_only``, ``run_merged``) finish
every stage before returning and raise on the first failure. ``stream`` is the
progressive mode: it yields a :class:`StageEvent` as soon as each stage or
sentence completes, reports per-sentence TTS failures as ``tts_error`` and
keeps going, and turns any other failure into one terminal ``error`` event.

Collaborator calls (STT, webhook stream, TTS) are the only suspension points
and each is bounded by the timeout configured for it.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import AsyncGenerator, Awaitable, Optional, TypeVar

from ..config import Settings
from ..errors import UpstreamCallError, UpstreamTimeout
from ..services.audio_container import AudioContainerRecombiner, AudioFormat
from ..services.stt_service import DEFAULT_MIME_TYPE, SttOptions
from ..services.text_segmenter import Sentence, SentenceSegmenter
from ..streaming import ReassembledMessage, TranscriptAccumulator
from .types import (
    MergedAudio,
    PipelineResult,
    PipelineRun,
    ReplyStream,
    RunStage,
    SentenceAudio,
    SpeechToText,
    StageEvent,
    TextToSpeech,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineOrchestrator:
    """Sequence STT, the webhook stream and TTS for one recording at a time."""

    def __init__(
        self,
        settings: Settings,
        stt_client: SpeechToText,
        webhook_client: ReplyStream,
        tts_client: TextToSpeech,
        *,
        segmenter: Optional[SentenceSegmenter] = None,
        recombiner: Optional[AudioContainerRecombiner] = None,
    ):
        self._settings = settings
        self._stt = stt_client
        self._webhook = webhook_client
        self._tts = tts_client
        self._segmenter = segmenter or SentenceSegmenter()
        self._recombiner = recombiner or AudioContainerRecombiner(
            AudioFormat(sample_rate=settings.tts_sample_rate)
        )

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------
    async def _bounded(self, service: str, timeout: float, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamTimeout(service, f"no response within {timeout:g}s") from exc

    async def _transcribe(
        self, run: PipelineRun, audio: bytes, mime_type: str, options: SttOptions
    ) -> str:
        logger.info("[%s] Step 1: Converting audio to text using STT...", run.request_id)
        text = await self._bounded(
            "stt",
            self._settings.stt_timeout,
            self._stt.transcribe(audio, mime_type, options),
        )
        run.advance(RunStage.STT_DONE)
        logger.info('[%s] STT Result: "%s"', run.request_id, text)
        return text

    async def _fetch_reply(self, run: PipelineRun, text: str) -> list[ReassembledMessage]:
        logger.info("[%s] Step 2: Calling webhook with streaming response...", run.request_id)

        async def _collect() -> list[ReassembledMessage]:
            return [
                message
                async for message in self._webhook.stream_messages(text, run.request_id)
            ]

        messages = await self._bounded("webhook", self._settings.webhook_timeout, _collect())
        run.advance(RunStage.BACKEND_DONE)
        logger.info("[%s] Webhook returned %d responses", run.request_id, len(messages))
        return messages

    def _accumulate(self, run: PipelineRun, messages: list[ReassembledMessage]) -> str:
        logger.info("[%s] Step 3: Accumulating webhook responses...", run.request_id)
        accumulated = TranscriptAccumulator().extend(messages).text
        run.advance(RunStage.ACCUMULATED)
        logger.info('[%s] Accumulated text: "%s"', run.request_id, accumulated)
        return accumulated

    def _segment(self, run: PipelineRun, text: str) -> list[Sentence]:
        sentences = self._segmenter.segment(text)
        run.advance(RunStage.SEGMENTED)
        logger.info(
            "[%s] Split into %d sentence(s) for TTS conversion",
            run.request_id,
            len(sentences),
        )
        return sentences

    def _should_skip(self, run: PipelineRun, sentence: Sentence) -> bool:
        if sentence.is_speakable(self._settings.min_sentence_chars):
            return False
        logger.info('[%s] Skipping short sentence: "%s"', run.request_id, sentence.text)
        return True

    async def _synthesize(self, run: PipelineRun, sentence: Sentence, total: int) -> str:
        if run.stage is not RunStage.SYNTHESIZING:
            run.advance(RunStage.SYNTHESIZING)
        logger.info(
            '[%s] Converting sentence %d/%d: "%s"',
            run.request_id,
            sentence.index,
            total,
            sentence.text,
        )
        audio_base64 = await self._bounded(
            "tts", self._settings.tts_timeout, self._tts.synthesize(sentence.text)
        )
        run.synthesized += 1
        return audio_base64

    def _finish(self, run: PipelineRun) -> None:
        run.advance(RunStage.COMPLETE)
        logger.info(
            "[%s] Processing complete. Generated %d TTS audio files",
            run.request_id,
            run.synthesized,
        )

    # ------------------------------------------------------------------
    # Aggregate mode
    # ------------------------------------------------------------------
    async def run(
        self,
        audio: bytes,
        *,
        mime_type: str = DEFAULT_MIME_TYPE,
        options: Optional[SttOptions] = None,
        request_id: Optional[str] = None,
    ) -> PipelineResult:
        """Run every stage and return all sentence clips, or raise."""

        run = PipelineRun(request_id=request_id) if request_id else PipelineRun()
        options = options or SttOptions()
        logger.info("[%s] Starting recording processing (%d bytes)", run.request_id, len(audio))
        try:
            stt_text = await self._transcribe(run, audio, mime_type, options)
            messages = await self._fetch_reply(run, stt_text)
            accumulated = self._accumulate(run, messages)
            sentences = self._segment(run, accumulated)

            results: list[SentenceAudio] = []
            for sentence in sentences:
                if self._should_skip(run, sentence):
                    continue
                audio_base64 = await self._synthesize(run, sentence, len(sentences))
                results.append(SentenceAudio(sentence=sentence, audio_base64=audio_base64))

            self._finish(run)
        except Exception as exc:
            run.fail(exc)
            logger.error("[%s] Error processing recording: %s", run.request_id, exc)
            raise

        return PipelineResult(
            request_id=run.request_id,
            stt_text=stt_text,
            stt_options=options.as_dict(),
            webhook_response_count=len(messages),
            accumulated_text=accumulated,
            results=results,
        )

    async def run_audio_only(
        self,
        audio: bytes,
        *,
        mime_type: str = DEFAULT_MIME_TYPE,
        options: Optional[SttOptions] = None,
        request_id: Optional[str] = None,
    ) -> list[str]:
        """Run every stage and return only the base64 sentence clips."""

        result = await self.run(
            audio, mime_type=mime_type, options=options, request_id=request_id
        )
        return result.audios

    async def run_merged(
        self,
        audio: bytes,
        *,
        mime_type: str = DEFAULT_MIME_TYPE,
        options: Optional[SttOptions] = None,
        request_id: Optional[str] = None,
    ) -> MergedAudio:
        """Run every stage and merge the sentence clips into one WAV container."""

        result = await self.run(
            audio, mime_type=mime_type, options=options, request_id=request_id
        )
        clips: list[bytes] = []
        for item in result.results:
            try:
                clips.append(base64.b64decode(item.audio_base64, validate=True))
            except (binascii.Error, ValueError) as exc:
                logger.error(
                    "[%s] Sentence %d returned invalid base64 audio",
                    result.request_id,
                    item.sentence.index,
                )
                raise UpstreamCallError("tts", "TTS API returned invalid base64 audio") from exc

        container = self._recombiner.merge(clips)
        return MergedAudio(request_id=result.request_id, count=len(clips), container=container)

    # ------------------------------------------------------------------
    # Progressive mode
    # ------------------------------------------------------------------
    async def stream(
        self,
        audio: bytes,
        *,
        mime_type: str = DEFAULT_MIME_TYPE,
        options: Optional[SttOptions] = None,
        request_id: Optional[str] = None,
    ) -> AsyncGenerator[StageEvent, None]:
        """Yield stage events as the run progresses."""

        run = PipelineRun(request_id=request_id) if request_id else PipelineRun()
        options = options or SttOptions()

        yield StageEvent(
            "start",
            {
                "requestId": run.request_id,
                "message": "Processing started",
                "timestamp": utc_timestamp(),
            },
        )
        logger.info(
            "[%s] Starting recording processing (STREAMING, %d bytes)",
            run.request_id,
            len(audio),
        )

        try:
            yield StageEvent("stt_start", {"message": "Converting audio to text..."})
            stt_text = await self._transcribe(run, audio, mime_type, options)
            yield StageEvent(
                "stt_complete", {"sttText": stt_text, "sttOptions": options.as_dict()}
            )

            yield StageEvent("webhook_start", {"message": "Calling webhook..."})
            messages = await self._fetch_reply(run, stt_text)
            yield StageEvent("webhook_complete", {"webhookResponseCount": len(messages)})

            accumulated = self._accumulate(run, messages)
            sentences = self._segment(run, accumulated)
            total = len(sentences)
            yield StageEvent(
                "tts_start",
                {
                    "message": "Converting text to speech...",
                    "totalSentences": total,
                    "accumulatedText": accumulated,
                },
            )

            for sentence in sentences:
                if self._should_skip(run, sentence):
                    continue
                try:
                    audio_base64 = await self._synthesize(run, sentence, total)
                except Exception as exc:
                    logger.error(
                        "[%s] Error converting sentence %d: %s",
                        run.request_id,
                        sentence.index,
                        exc,
                    )
                    yield StageEvent(
                        "tts_error",
                        {
                            "sentenceIndex": sentence.index,
                            "sentence": sentence.text,
                            "error": str(exc),
                        },
                    )
                    continue

                yield StageEvent(
                    "tts_result",
                    {
                        "sentenceIndex": sentence.index,
                        "sentence": sentence.text,
                        "ttsBase64": audio_base64,
                        "fullTtsBase64": audio_base64,
                        "progress": f"{run.synthesized}/{total}",
                    },
                )

            self._finish(run)
            yield StageEvent(
                "complete",
                {
                    "requestId": run.request_id,
                    "success": True,
                    "totalSentences": total,
                    "successCount": run.synthesized,
                    "message": "Processing complete",
                    "timestamp": utc_timestamp(),
                },
            )
        except (GeneratorExit, asyncio.CancelledError):
            # Consumer went away; in-flight calls are discarded
            if not run.finished:
                run.fail("client disconnected")
                logger.warning(
                    "[%s] Client disconnected during %s; abandoning run",
                    run.request_id,
                    run.stage.value,
                )
            raise
        except Exception as exc:
            run.fail(exc)
            logger.error("[%s] Error processing recording: %s", run.request_id, exc)
            yield StageEvent(
                "error",
                {"requestId": run.request_id, "success": False, "error": str(exc)},
            )


__all__ = ["PipelineOrchestrator"]
