"""
RecognitionResult model.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RecognitionResult:
    """Text recognized in one still image. Transient, never stored."""
    text: str
    timestamp: float

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
