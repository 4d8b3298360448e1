"""
Media device interfaces.

The capture layer never talks to a camera API directly. It is handed a
MediaDevices implementation:
- OpenCV backend: USB webcams via cv2.VideoCapture
- Test fakes: in-memory devices with scripted frames and capabilities

get_stream() raises PermissionError when access is refused and OSError (or
any other exception) when the device cannot be opened.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import numpy as np


VIDEO_INPUT = "videoinput"


@dataclass(frozen=True)
class DeviceDescriptor:
    """One enumerated media device."""
    device_id: str
    kind: str = VIDEO_INPUT
    label: str = ""


class VideoTrack(Protocol):
    def get_capabilities(self) -> Dict[str, Any]:
        ...

    async def apply_constraints(self, constraints: Dict[str, Any]) -> None:
        ...

    def read_frame(self) -> Optional[np.ndarray]:
        """Latest decoded frame (BGR), or None if nothing has been produced yet."""
        ...

    def stop(self) -> None:
        ...


class MediaStream(Protocol):
    def get_video_tracks(self) -> List[VideoTrack]:
        ...


class MediaDevices(Protocol):
    async def enumerate_devices(self) -> List[DeviceDescriptor]:
        ...

    async def get_stream(self, device_id: str) -> MediaStream:
        ...
