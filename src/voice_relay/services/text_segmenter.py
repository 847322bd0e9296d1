"""
Sentence segmentation for the TTS stage.

The conversational backend gives no sentence boundaries, so the reply text is
split by a cascade of strategies. Each strategy is a pure
``text -> list[str] | None`` function; the first one returning a non-empty
list wins:

    1. split_on_punctuation  (. ! ? । ॥)
    2. split_on_newlines     (only if it yields more than one piece)
    3. split_long_text       (only past 100 characters)
    4. whole_text            (never fails)

Usage:
    segmenter = SentenceSegmenter()
    for sentence in segmenter.segment(reply_text):
        if sentence.is_speakable():
            ...
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# ASCII terminators plus the Devanagari danda and double danda
SENTENCE_TERMINATORS = ".!?।॥"
LONG_TEXT_THRESHOLD = 100
MIN_SPEAKABLE_CHARS = 2

_TERMINATOR_CLASS = "[" + re.escape(SENTENCE_TERMINATORS) + "]"
_SENTENCE_PATTERN = re.compile(
    "[^" + re.escape(SENTENCE_TERMINATORS) + "]+" + _TERMINATOR_CLASS + "+"
)
_NEWLINE_PATTERN = re.compile(r"\r?\n")
# Uppercase lookahead only helps cased Latin text
_LONG_TEXT_PATTERN = re.compile(r"\s{2,}|\s+(?=[A-Z])")

Strategy = Callable[[str], Optional[List[str]]]


@dataclass(frozen=True)
class Sentence:
    """One speakable unit with its 1-based position in the segmentation."""

    index: int
    text: str

    def is_speakable(self, min_chars: int = MIN_SPEAKABLE_CHARS) -> bool:
        stripped = self.text.strip()
        return len(stripped) >= min_chars and has_words(stripped)


def has_words(text: str) -> bool:
    """True when ``text`` holds at least one letter or digit."""
    return any(char.isalnum() for char in text)


def _fold_bare_punctuation(pieces: Sequence[str]) -> List[str]:
    # Pieces without words join a neighbour: the previous one, else the next
    folded: List[str] = []
    pending = ""
    for piece in pieces:
        if not has_words(piece):
            if folded:
                folded[-1] += piece
            else:
                pending += piece
            continue
        folded.append(pending + piece)
        pending = ""
    if pending:
        folded.append(pending)
    return folded


def _clean(pieces: Sequence[str]) -> List[str]:
    return [piece.strip() for piece in pieces if piece.strip()]


def split_on_punctuation(text: str) -> Optional[List[str]]:
    """Split after runs of sentence terminators.

    Returns ``None`` when no sentence ends in a terminator. Leading
    terminators and text following the last terminator are kept, and a
    piece made only of punctuation is folded into its neighbour.
    """
    matches = list(_SENTENCE_PATTERN.finditer(text))
    if not matches:
        return None
    pieces = [match.group(0) for match in matches]
    pieces[0] = text[: matches[0].start()] + pieces[0]
    tail = text[matches[-1].end():]
    if tail:
        pieces.append(tail)
    return _clean(_fold_bare_punctuation(pieces)) or None


def split_on_newlines(text: str) -> Optional[List[str]]:
    pieces = _clean(_NEWLINE_PATTERN.split(text))
    return pieces if len(pieces) > 1 else None


def split_long_text(text: str) -> Optional[List[str]]:
    if len(text) <= LONG_TEXT_THRESHOLD:
        return None
    pieces = _clean(_LONG_TEXT_PATTERN.split(text))
    return pieces if len(pieces) > 1 else None


def whole_text(text: str) -> Optional[List[str]]:
    return [text] if text else None


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    split_on_punctuation,
    split_on_newlines,
    split_long_text,
    whole_text,
)


class SentenceSegmenter:
    """Run the strategy cascade over accumulated reply text."""

    def __init__(self, strategies: Optional[Sequence[Strategy]] = None):
        self.strategies: tuple[Strategy, ...] = tuple(strategies or DEFAULT_STRATEGIES)

    def split(self, text: str) -> List[str]:
        """Return sentence strings; empty or blank input yields ``[]``."""
        if not text or not text.strip():
            return []

        trimmed = text.strip()
        for strategy in self.strategies:
            pieces = strategy(trimmed)
            if pieces:
                logger.debug(
                    "Segmented %d chars into %d piece(s) via %s",
                    len(trimmed),
                    len(pieces),
                    getattr(strategy, "__name__", repr(strategy)),
                )
                return pieces
        return []

    def segment(self, text: str) -> List[Sentence]:
        return [
            Sentence(index=position, text=piece)
            for position, piece in enumerate(self.split(text), start=1)
        ]


def split_into_sentences(text: str) -> List[str]:
    """Module-level shortcut using the default cascade."""

    return SentenceSegmenter().split(text)


__all__ = [
    "DEFAULT_STRATEGIES",
    "LONG_TEXT_THRESHOLD",
    "MIN_SPEAKABLE_CHARS",
    "SENTENCE_TERMINATORS",
    "Sentence",
    "SentenceSegmenter",
    "has_words",
    "split_into_sentences",
    "split_long_text",
    "split_on_newlines",
    "split_on_punctuation",
    "whole_text",
]
