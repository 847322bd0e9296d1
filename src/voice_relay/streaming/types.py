"""Type definitions for the backend stream subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

CONTENT_ITEM_KIND = "item"


@dataclass(frozen=True)
class ReassembledMessage:
    """One logical record recovered from the backend chunk stream."""

    payload: Any
    raw: str

    @property
    def kind(self) -> str | None:
        """Structural tag (``begin``/``item``/``end``...) if the record has one."""
        if isinstance(self.payload, dict) and self.payload.get("type"):
            return str(self.payload["type"])
        return None


__all__ = ["CONTENT_ITEM_KIND", "ReassembledMessage"]
