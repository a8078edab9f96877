from __future__ import annotations

from typing import Protocol


class LayoutEngine(Protocol):
    def run(self, dot_text: str) -> str:
        """Lay out ``dot_text`` and return the engine's plain-format output."""
        ...
