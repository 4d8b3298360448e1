"""
StillImage model for encoded snapshots of the live stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np


_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


@dataclass(frozen=True)
class StillImage:
    """
    A single encoded frame taken from a video stream.

    Attributes:
        data: Encoded image bytes.
        width: Image width in pixels.
        height: Image height in pixels.
        mime_type: Encoding of `data`, e.g. "image/png".
        timestamp: Unix timestamp when the frame was taken.
    """
    data: bytes
    width: int
    height: int
    mime_type: str
    timestamp: float

    @classmethod
    def encode(cls, frame: np.ndarray, timestamp: float, image_format: str = "png") -> "StillImage":
        """Encode a BGR numpy frame."""
        fmt = image_format.lower().lstrip(".")
        if fmt not in _MIME_TYPES:
            raise ValueError(f"Unsupported image format: {image_format}")
        ok, buf = cv2.imencode(f".{fmt}", frame)
        if not ok:
            raise ValueError(f"Failed to encode frame as {fmt}")
        h, w = frame.shape[:2]
        return cls(
            data=buf.tobytes(),
            width=w,
            height=h,
            mime_type=_MIME_TYPES[fmt],
            timestamp=timestamp,
        )

    def decode(self) -> np.ndarray:
        """Decode back into a BGR numpy array."""
        arr = np.frombuffer(self.data, dtype=np.uint8)
        frame = cv2.imdecode(arr, cv2.IMREAD_COLOR)
        if frame is None:
            raise ValueError(f"Failed to decode {self.mime_type} image")
        return frame

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
