"""Tests for merging WAV clips into one container."""

import struct

from voice_relay.services.audio_container import (
    WAV_HEADER_SIZE,
    AudioContainerRecombiner,
    AudioFormat,
    build_wav_header,
    extract_pcm_payload,
    merge_wav_containers,
)


def make_wav(payload: bytes, *, extra_chunk: bytes = b"", sample_rate: int = 24000) -> bytes:
    fmt = struct.pack("<HHIIHH", 1, 1, sample_rate, sample_rate * 2, 2, 16)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt
    if extra_chunk:
        body += b"LIST" + struct.pack("<I", len(extra_chunk)) + extra_chunk
    body += b"data" + struct.pack("<I", len(payload)) + payload
    return b"RIFF" + struct.pack("<I", len(body)) + body


def parse_header(container: bytes) -> dict:
    fields = struct.unpack_from("<4sI4s4sIHHIIHH4sI", container, 0)
    keys = [
        "riff", "riff_size", "wave", "fmt", "fmt_size", "format_tag", "channels",
        "sample_rate", "byte_rate", "block_align", "bits", "data", "data_size",
    ]
    return dict(zip(keys, fields))


class TestExtractPayload:
    def test_plain_wav(self):
        assert extract_pcm_payload(make_wav(b"\x01\x02\x03\x04")) == b"\x01\x02\x03\x04"

    def test_marker_after_extra_chunk(self):
        wav = make_wav(b"\xaa" * 6, extra_chunk=b"INFOISFT\x0e\x00\x00\x00Lavf58.76.100\x00")
        assert extract_pcm_payload(wav) == b"\xaa" * 6

    def test_missing_marker(self):
        assert extract_pcm_payload(b"RIFF\x00\x00\x00\x00WAVEfmt ") == b""
        assert extract_pcm_payload(b"") == b""

    def test_zero_length_payload(self):
        assert extract_pcm_payload(make_wav(b"")) == b""

    def test_truncated_size_field(self):
        assert extract_pcm_payload(b"xxdata\x10") == b""

    def test_declared_length_longer_than_buffer(self):
        wav = b"data" + struct.pack("<I", 100) + b"\x01\x02"
        assert extract_pcm_payload(wav) == b"\x01\x02"


class TestMerge:
    def test_two_segments_concatenate_in_order(self):
        first = bytes([1]) * 1000
        second = bytes([2]) * 2000
        merged = merge_wav_containers([make_wav(first), make_wav(second)])

        assert len(merged) == WAV_HEADER_SIZE + 3000
        assert merged[WAV_HEADER_SIZE:] == first + second

        header = parse_header(merged)
        assert header["riff"] == b"RIFF"
        assert header["wave"] == b"WAVE"
        assert header["fmt"] == b"fmt "
        assert header["data"] == b"data"
        assert header["riff_size"] == 36 + 3000
        assert header["data_size"] == 3000
        assert header["riff_size"] + 8 == len(merged)

    def test_header_format_fields(self):
        header = parse_header(build_wav_header(10))
        assert header["fmt_size"] == 16
        assert header["format_tag"] == 1
        assert header["channels"] == 1
        assert header["sample_rate"] == 24000
        assert header["bits"] == 16
        assert header["byte_rate"] == 48000
        assert header["block_align"] == 2

    def test_invalid_segments_contribute_nothing(self):
        merged = merge_wav_containers([b"not audio", make_wav(b"\x05\x06"), make_wav(b"")])
        assert merged[WAV_HEADER_SIZE:] == b"\x05\x06"
        assert parse_header(merged)["data_size"] == 2

    def test_no_segments(self):
        merged = merge_wav_containers([])
        assert len(merged) == WAV_HEADER_SIZE
        header = parse_header(merged)
        assert header["riff_size"] == 36
        assert header["data_size"] == 0

    def test_recombiner_uses_its_format(self):
        recombiner = AudioContainerRecombiner(AudioFormat(sample_rate=16000, channels=2))
        header = parse_header(recombiner.merge([make_wav(b"\x00" * 8)]))
        assert header["sample_rate"] == 16000
        assert header["channels"] == 2
        assert header["block_align"] == 4
        assert header["byte_rate"] == 64000
        assert header["data_size"] == 8


def test_audio_format_derived_fields():
    audio_format = AudioFormat()
    assert audio_format.block_align == 2
    assert audio_format.byte_rate == 48000
