"""Merge per-sentence WAV clips into a single linear PCM container.

Each TTS clip arrives as a complete RIFF/WAVE file. Merging means locating the
``data`` sub-chunk of every clip, concatenating only the samples, and writing
one fresh 44-byte header whose size fields match the combined payload.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterable

logger = logging.getLogger(__name__)

DATA_MARKER = b"data"
WAV_HEADER_SIZE = 44
PCM_FORMAT_TAG = 1


@dataclass(frozen=True)
class AudioFormat:
    sample_rate: int = 24000
    channels: int = 1
    bits_per_sample: int = 16

    @property
    def block_align(self) -> int:
        return self.channels * (self.bits_per_sample // 8)

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align


DEFAULT_AUDIO_FORMAT = AudioFormat()


def extract_pcm_payload(buffer: bytes) -> bytes:
    """Return the sample bytes of the first ``data`` sub-chunk in ``buffer``.

    The container is scanned with an explicit cursor. Buffers without a marker,
    or whose declared payload length is zero, contribute nothing.
    """

    cursor = 0
    last_start = len(buffer) - len(DATA_MARKER)
    while cursor <= last_start:
        if buffer[cursor:cursor + 4] == DATA_MARKER:
            break
        cursor += 1
    else:
        logger.debug("No data marker in %d-byte clip; skipping", len(buffer))
        return b""

    size_offset = cursor + 4
    if size_offset + 4 > len(buffer):
        logger.debug("Truncated data sub-chunk header at offset %d; skipping", cursor)
        return b""

    (payload_length,) = struct.unpack_from("<I", buffer, size_offset)
    if payload_length <= 0:
        logger.debug("Empty data sub-chunk at offset %d; skipping", cursor)
        return b""

    payload_start = cursor + 8
    return bytes(buffer[payload_start:payload_start + payload_length])


def build_wav_header(
    payload_length: int, audio_format: AudioFormat = DEFAULT_AUDIO_FORMAT
) -> bytes:
    """Build the canonical 44-byte RIFF/WAVE header for ``payload_length`` bytes."""

    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + payload_length,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_TAG,
        audio_format.channels,
        audio_format.sample_rate,
        audio_format.byte_rate,
        audio_format.block_align,
        audio_format.bits_per_sample,
        DATA_MARKER,
        payload_length,
    )


def merge_wav_containers(
    buffers: Iterable[bytes], audio_format: AudioFormat = DEFAULT_AUDIO_FORMAT
) -> bytes:
    """Concatenate the sample payloads of ``buffers`` under one new header."""

    payload = bytearray()
    for position, buffer in enumerate(buffers, start=1):
        samples = extract_pcm_payload(buffer)
        logger.debug("Clip %d contributed %d payload bytes", position, len(samples))
        payload.extend(samples)
    return build_wav_header(len(payload), audio_format) + bytes(payload)


class AudioContainerRecombiner:
    """Merge clips that share one fixed :class:`AudioFormat`."""

    def __init__(self, audio_format: AudioFormat = DEFAULT_AUDIO_FORMAT):
        self.audio_format = audio_format

    def merge(self, buffers: Iterable[bytes]) -> bytes:
        merged = merge_wav_containers(buffers, self.audio_format)
        logger.info(
            "Merged container: %d payload bytes at %d Hz",
            len(merged) - WAV_HEADER_SIZE,
            self.audio_format.sample_rate,
        )
        return merged


__all__ = [
    "AudioContainerRecombiner",
    "AudioFormat",
    "DATA_MARKER",
    "DEFAULT_AUDIO_FORMAT",
    "WAV_HEADER_SIZE",
    "build_wav_header",
    "extract_pcm_payload",
    "merge_wav_containers",
]
