"""
Recognition engine interface.

Engines are request-scoped: the adapter builds one from a factory for every
still image and closes it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Protocol

from models.frame import StillImage


@dataclass(frozen=True)
class RecognitionOptions:
    languages: FrozenSet[str] = field(default_factory=lambda: frozenset({"eng"}))
    auto_rotate: bool = True


class TextRecognizer(Protocol):
    def recognize_text(self, image: StillImage) -> str:
        ...

    def close(self) -> None:
        ...


RecognizerFactory = Callable[[RecognitionOptions], TextRecognizer]
