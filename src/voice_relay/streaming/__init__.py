"""
Backend stream handling.

- reassembler: rebuilds newline-delimited records from raw chunks
- accumulator: folds content records into the reply text

    ┌──────────────┐     ┌──────────────────────────┐     ┌───────────────────────┐
    │ httpx stream │────▶│ ChunkedMessageReassembler│────▶│ TranscriptAccumulator │
    └──────────────┘     └──────────────────────────┘     └───────────────────────┘
"""

from .accumulator import TranscriptAccumulator, accumulate, extract_text
from .reassembler import ChunkedMessageReassembler, reassemble
from .types import ReassembledMessage

__all__ = [
    "ChunkedMessageReassembler",
    "ReassembledMessage",
    "TranscriptAccumulator",
    "accumulate",
    "extract_text",
    "reassemble",
]
