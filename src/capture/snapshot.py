"""
Frame snapshotter: turns the current frame of a live session into an encoded
still image.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from errors import NoFrameAvailable
from models.frame import StillImage

from .manager import CaptureSession


@dataclass
class SnapshotterConfig:
    """
    Attributes:
        viewport: Target (width, height) of the still, matching the displayed preview.
        image_format: Encoding of the still ("png" or "jpg").
    """
    viewport: Tuple[int, int] = (620, 480)
    image_format: str = "png"


class FrameSnapshotter:
    """Extracts one still image from a live session on demand."""

    def __init__(self, config: SnapshotterConfig = None):
        self.config = config or SnapshotterConfig()

    async def snapshot(self, session: CaptureSession) -> StillImage:
        """
        Take the current frame, scale it to the viewport and encode it.

        The track is only read, never paused.

        Raises:
            NoFrameAvailable: The session is released or has no frame yet.
        """
        track = session.video_track
        if session.released or track is None:
            raise NoFrameAvailable(f"Session on {session.device_id} is not live")

        frame = track.read_frame()
        if frame is None:
            raise NoFrameAvailable(f"No frame available yet on {session.device_id}")

        timestamp = time.time()
        return await asyncio.to_thread(self._render, frame, timestamp)

    def _render(self, frame: np.ndarray, timestamp: float) -> StillImage:
        width, height = self.config.viewport
        if (frame.shape[1], frame.shape[0]) != (width, height):
            frame = cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)
        still = StillImage.encode(frame, timestamp, self.config.image_format)
        logging.debug(f"Snapshot {still.width}x{still.height} {still.mime_type}, {len(still.data)} bytes")
        return still
