"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_ids: Optional[List[int]] = None
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    buffer_size: int = 1
    capabilities: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_ids=d.get("device_ids"),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            buffer_size=d.get("buffer_size", 1),
            capabilities=d.get("capabilities"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "resolution": self.resolution,
            "fps": self.fps,
            "buffer_size": self.buffer_size,
        }
        if self.device_ids is not None:
            d["device_ids"] = self.device_ids
        if self.capabilities is not None:
            d["capabilities"] = self.capabilities
        return d


@dataclass
class SnapshotConfig:
    """Snapshot sizing and encoding."""
    viewport: List[int] = field(default_factory=lambda: [620, 480])
    image_format: str = "png"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SnapshotConfig":
        return cls(
            viewport=d.get("viewport", [620, 480]),
            image_format=d.get("image_format", "png"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "viewport": self.viewport,
            "image_format": self.image_format,
        }


@dataclass
class RecognitionConfig:
    """OCR engine configuration."""
    languages: List[str] = field(default_factory=lambda: ["eng"])
    auto_rotate: bool = True
    tesseract_cmd: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RecognitionConfig":
        return cls(
            languages=d.get("languages", ["eng"]),
            auto_rotate=d.get("auto_rotate", True),
            tesseract_cmd=d.get("tesseract_cmd"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "languages": self.languages,
            "auto_rotate": self.auto_rotate,
        }
        if self.tesseract_cmd is not None:
            d["tesseract_cmd"] = self.tesseract_cmd
        return d


@dataclass
class ScanConfig:
    """Scan cycle policy. Defaults to one manual cycle per trigger."""
    continuous: bool = False
    interval_seconds: float = 1.0
    stop_on_first_match: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScanConfig":
        return cls(
            continuous=d.get("continuous", False),
            interval_seconds=d.get("interval_seconds", 1.0),
            stop_on_first_match=d.get("stop_on_first_match", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "continuous": self.continuous,
            "interval_seconds": self.interval_seconds,
            "stop_on_first_match": self.stop_on_first_match,
        }


@dataclass
class ControlsConfig:
    """User control behaviour."""
    zoom_step: float = 1.0
    zoom_default: float = 1.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ControlsConfig":
        return cls(
            zoom_step=d.get("zoom_step", 1.0),
            zoom_default=d.get("zoom_default", 1.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zoom_step": self.zoom_step,
            "zoom_default": self.zoom_default,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    controls: ControlsConfig = field(default_factory=ControlsConfig)
    log_path: str = "logs/scanner.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {})),
            snapshot=SnapshotConfig.from_dict(d.get("snapshot", {})),
            recognition=RecognitionConfig.from_dict(d.get("recognition", {})),
            scan=ScanConfig.from_dict(d.get("scan", {})),
            controls=ControlsConfig.from_dict(d.get("controls", {})),
            log_path=d.get("log_path", "logs/scanner.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "snapshot": self.snapshot.to_dict(),
            "recognition": self.recognition.to_dict(),
            "scan": self.scan.to_dict(),
            "controls": self.controls.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
