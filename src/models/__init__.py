"""
Typed models for the scanner.

Value objects are frozen dataclasses; config models provide from_dict/to_dict
adapters for the YAML config structure.
"""

from .capability import (
    CapabilityModel,
    ConstraintRequest,
    ControlSet,
    DesiredSettings,
    ZoomRange,
)
from .frame import StillImage
from .recognition import RecognitionResult
from .config import (
    Config,
    CameraConfig,
    SnapshotConfig,
    RecognitionConfig,
    ScanConfig,
    ControlsConfig,
)

__all__ = [
    # Capabilities
    "CapabilityModel",
    "ConstraintRequest",
    "ControlSet",
    "DesiredSettings",
    "ZoomRange",
    # Frames
    "StillImage",
    # Recognition
    "RecognitionResult",
    # Config
    "Config",
    "CameraConfig",
    "SnapshotConfig",
    "RecognitionConfig",
    "ScanConfig",
    "ControlsConfig",
]
