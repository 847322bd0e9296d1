"""Rebuild newline-delimited records from an arbitrarily chunked byte stream.

The conversational backend streams its reply as one record per line, but the
transport delivers the body in chunks whose boundaries have nothing to do with
line boundaries: a chunk may hold several records, half a record, or stop in
the middle of a multi-byte UTF-8 character.

Architecture:
    httpx response.aiter_bytes() → ChunkedMessageReassembler.feed() → messages

Usage:
    reassembler = ChunkedMessageReassembler()
    async for chunk in response.aiter_bytes():
        for message in reassembler.feed(chunk):
            ...
    for message in reassembler.close():
        ...
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import AsyncIterable, AsyncIterator, Iterable

import httpx

from ..errors import StreamTransportError
from .types import ReassembledMessage

logger = logging.getLogger(__name__)

MESSAGE_DELIMITER = "\n"


def parse_message(piece: str) -> ReassembledMessage | None:
    """Classify one complete line; blank lines yield ``None``."""

    trimmed = piece.strip()
    if not trimmed:
        return None
    try:
        payload = json.loads(trimmed)
    except json.JSONDecodeError:
        payload = {"text": trimmed}
    return ReassembledMessage(payload=payload, raw=trimmed)


class ChunkedMessageReassembler:
    """
    Stateful splitter turning raw chunks into complete records.

    Holds a single pending buffer with text not yet known to end at a record
    boundary. Bytes are decoded incrementally so a code point split across two
    chunks is only materialized once all of its bytes have arrived.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""
        self._closed = False
        self._emitted = 0

    def feed(self, chunk: bytes | str) -> list[ReassembledMessage]:
        """Consume one chunk and return the records it completed, in order."""

        if self._closed:
            raise RuntimeError("Cannot feed a closed reassembler")
        if not chunk:
            return []

        if isinstance(chunk, (bytes, bytearray, memoryview)):
            text = self._decoder.decode(bytes(chunk))
        else:
            text = chunk

        self._pending += text
        pieces = self._pending.split(MESSAGE_DELIMITER)
        # The last piece is either empty or an unterminated record
        self._pending = pieces.pop()
        return self._emit(pieces)

    def close(self) -> list[ReassembledMessage]:
        """Flush the decoder and emit the trailing record, if any."""

        if self._closed:
            return []
        self._closed = True
        self._pending += self._decoder.decode(b"", final=True)
        remainder, self._pending = self._pending, ""
        pieces = remainder.split(MESSAGE_DELIMITER)
        return self._emit(pieces)

    def _emit(self, pieces: Iterable[str]) -> list[ReassembledMessage]:
        messages: list[ReassembledMessage] = []
        for piece in pieces:
            message = parse_message(piece)
            if message is None:
                continue
            messages.append(message)
            self._emitted += 1
            logger.debug("Reassembled record %d: %s", self._emitted, message.raw[:120])
        return messages

    @property
    def pending_size(self) -> int:
        """Characters buffered while waiting for a record boundary."""
        return len(self._pending)

    @property
    def emitted_count(self) -> int:
        return self._emitted


async def reassemble(
    chunks: AsyncIterable[bytes | str],
) -> AsyncIterator[ReassembledMessage]:
    """Yield records from an async chunk source, failing on transport errors."""

    reassembler = ChunkedMessageReassembler()
    try:
        async for chunk in chunks:
            for message in reassembler.feed(chunk):
                yield message
    except httpx.TimeoutException:
        # Deadline errors stay distinct from broken transports
        raise
    except (httpx.HTTPError, OSError) as exc:
        logger.error("Backend stream failed after %d records: %s", reassembler.emitted_count, exc)
        raise StreamTransportError(str(exc) or exc.__class__.__name__) from exc

    for message in reassembler.close():
        yield message


__all__ = [
    "ChunkedMessageReassembler",
    "MESSAGE_DELIMITER",
    "parse_message",
    "reassemble",
]
