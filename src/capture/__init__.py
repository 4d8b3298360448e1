"""
Capture layer: media device boundary, capability negotiation, constraint
application and frame snapshots.
"""

from .base import DeviceDescriptor, MediaDevices, MediaStream, VideoTrack
from .capabilities import extract_capabilities
from .constraints import build_constraints, next_zoom_level
from .manager import CaptureSession, CaptureSourceManager
from .snapshot import FrameSnapshotter, SnapshotterConfig

__all__ = [
    "DeviceDescriptor",
    "MediaDevices",
    "MediaStream",
    "VideoTrack",
    "extract_capabilities",
    "build_constraints",
    "next_zoom_level",
    "CaptureSession",
    "CaptureSourceManager",
    "FrameSnapshotter",
    "SnapshotterConfig",
]
