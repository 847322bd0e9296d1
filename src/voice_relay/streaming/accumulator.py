"""Fold reassembled backend records into the reply text."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .types import CONTENT_ITEM_KIND, ReassembledMessage

logger = logging.getLogger(__name__)


def extract_text(payload: Any) -> str | None:
    """Return the text carried by one record payload, or ``None``.

    Records tagged with a ``type`` other than ``item`` are framing
    (``begin``, ``end``...) and never contribute text. For the rest the first
    of ``content``, the payload itself when it is a string, ``text`` and
    ``message`` wins.
    """

    if isinstance(payload, str):
        return payload or None
    if not isinstance(payload, dict):
        return None

    kind = payload.get("type")
    if kind and kind != CONTENT_ITEM_KIND:
        return None

    for key in ("content", "text", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class TranscriptAccumulator:
    """Append-only reply text for a single pipeline run."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._seen = 0

    def add(self, message: ReassembledMessage) -> str | None:
        self._seen += 1
        fragment = extract_text(message.payload)
        if fragment is None:
            logger.debug("Skipping non-content record (kind=%s)", message.kind)
            return None
        self._parts.append(fragment)
        return fragment

    def extend(self, messages: Iterable[ReassembledMessage]) -> "TranscriptAccumulator":
        for message in messages:
            self.add(message)
        return self

    @property
    def text(self) -> str:
        # Fragments are joined as received; a sentence may span several records
        return "".join(self._parts)

    @property
    def fragment_count(self) -> int:
        return len(self._parts)

    @property
    def message_count(self) -> int:
        return self._seen


def accumulate(messages: Iterable[ReassembledMessage]) -> str:
    """Shortcut returning the concatenated content of ``messages``."""

    return TranscriptAccumulator().extend(messages).text


__all__ = ["TranscriptAccumulator", "accumulate", "extract_text"]
