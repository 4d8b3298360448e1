"""
OpenCV media backend.

Implements the MediaDevices boundary on top of cv2.VideoCapture:
- enumeration from /dev/video* nodes (or an explicit list of indices)
- one background reader thread per stream so snapshots never pause capture
- constraint application through VideoCapture properties

OpenCV cannot report zoom ranges or torch support, so those capabilities
come from the camera config and are advisory. Autofocus support is probed.
"""

from __future__ import annotations

import asyncio
import glob
import logging
import os
import sys
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..base import VIDEO_INPUT, DeviceDescriptor


class OpenCVVideoTrack:
    """
    Live video track backed by a cv2.VideoCapture.

    The reader thread keeps only the latest frame.
    """

    def __init__(
        self,
        cap: cv2.VideoCapture,
        device_id: str,
        declared_capabilities: Optional[Dict[str, Any]] = None,
        focus_settle_seconds: float = 0.3,
    ) -> None:
        self.device_id = device_id
        self._cap = cap
        self._declared = dict(declared_capabilities or {})
        self._focus_settle_seconds = focus_settle_seconds

        self._cap_lock = threading.Lock()
        self._frame_lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._stop_event = threading.Event()
        self._consecutive_failures = 0

        self._thread = threading.Thread(
            target=self._reader_loop,
            name=f"opencv-reader-{device_id}",
            daemon=True,
        )
        self._thread.start()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _reader_loop(self) -> None:
        while not self._stop_event.is_set():
            with self._cap_lock:
                if self._cap is None:
                    break
                ret, frame = self._cap.read()

            if not ret or frame is None:
                self._consecutive_failures += 1
                if self._consecutive_failures in (1, 30):
                    logging.warning(
                        f"Failed to read frame on {self.device_id} "
                        f"(consecutive failures: {self._consecutive_failures})"
                    )
                time.sleep(0.05)
                continue

            self._consecutive_failures = 0
            with self._frame_lock:
                self._latest = frame

    def get_capabilities(self) -> Dict[str, Any]:
        capabilities = dict(self._declared)
        if "focusMode" not in capabilities and self._supports_autofocus():
            capabilities["focusMode"] = ["continuous", "single-shot"]
        return capabilities

    def _supports_autofocus(self) -> bool:
        with self._cap_lock:
            if self._cap is None:
                return False
            return self._cap.get(cv2.CAP_PROP_AUTOFOCUS) > 0

    async def apply_constraints(self, constraints: Dict[str, Any]) -> None:
        for entry in constraints.get("advanced", []):
            await asyncio.to_thread(self._apply_entry, entry)

    def _apply_entry(self, entry: Dict[str, Any]) -> None:
        for name, value in entry.items():
            if name == "zoom":
                self._set(cv2.CAP_PROP_ZOOM, float(value), name)
            elif name == "focusMode":
                if value != "single-shot":
                    raise ValueError(f"Unsupported focus mode: {value}")
                # one-shot: let autofocus settle once, then lock it
                self._set(cv2.CAP_PROP_AUTOFOCUS, 1, name)
                time.sleep(self._focus_settle_seconds)
                self._set(cv2.CAP_PROP_AUTOFOCUS, 0, name)
            elif name == "torch":
                raise ValueError("Torch control is not available through OpenCV")
            else:
                raise ValueError(f"Unknown constraint: {name}")

    def _set(self, prop: int, value: float, name: str) -> None:
        with self._cap_lock:
            if self._cap is None:
                raise ValueError(f"Track on {self.device_id} is stopped")
            if not self._cap.set(prop, value):
                raise ValueError(f"Device {self.device_id} rejected {name}={value}")

    def read_frame(self) -> Optional[np.ndarray]:
        with self._frame_lock:
            if self._latest is None:
                return None
            return self._latest.copy()

    def stop(self) -> None:
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        with self._cap_lock:
            if self._cap is not None:
                self._cap.release()
                self._cap = None
        with self._frame_lock:
            self._latest = None
        logging.info(f"Camera released ({self.device_id})")


class OpenCVMediaStream:
    def __init__(self, tracks: List[OpenCVVideoTrack]):
        self._tracks = tracks

    def get_video_tracks(self) -> List[OpenCVVideoTrack]:
        return list(self._tracks)


class OpenCVMediaDevices:
    """
    MediaDevices implementation for local cameras.

    Example:
        devices = OpenCVMediaDevices(resolution=(1280, 720), fps=30)
        manager = CaptureSourceManager(devices)
    """

    def __init__(
        self,
        device_ids: Optional[Sequence[int]] = None,
        resolution: Tuple[int, int] = (1280, 720),
        fps: int = 30,
        buffer_size: int = 1,
        capabilities: Optional[Dict[str, Any]] = None,
        warmup_seconds: float = 0.5,
    ) -> None:
        self.device_ids = list(device_ids) if device_ids else None
        self.resolution = resolution
        self.fps = fps
        self.buffer_size = buffer_size
        self.capabilities = capabilities
        self.warmup_seconds = warmup_seconds

    async def enumerate_devices(self) -> List[DeviceDescriptor]:
        return await asyncio.to_thread(self._discover)

    def _discover(self) -> List[DeviceDescriptor]:
        if self.device_ids is not None:
            indices = [int(i) for i in self.device_ids if int(i) >= 0]
        else:
            indices = self._detect_from_dev_nodes()

        devices = [
            DeviceDescriptor(
                device_id=str(index),
                kind=VIDEO_INPUT,
                label=self._read_sysfs_name(index) or f"Camera {index}",
            )
            for index in indices
        ]
        logging.info(f"Discovered {len(devices)} video inputs: {indices}")
        return devices

    @staticmethod
    def _detect_from_dev_nodes() -> List[int]:
        if not sys.platform.startswith("linux"):
            # No device nodes to list; the default camera is index 0.
            return [0]
        indices: List[int] = []
        for path in sorted(glob.glob("/dev/video*")):
            try:
                indices.append(int(Path(path).name.replace("video", "")))
            except ValueError:
                continue
        return sorted(indices)

    @staticmethod
    def _read_sysfs_name(index: int) -> Optional[str]:
        sys_name = Path(f"/sys/class/video4linux/video{index}/name")
        try:
            if sys_name.exists():
                return sys_name.read_text(encoding="utf-8").strip() or None
        except OSError:
            return None
        return None

    async def get_stream(self, device_id: str) -> OpenCVMediaStream:
        return await asyncio.to_thread(self._open, device_id)

    def _open(self, device_id: str) -> OpenCVMediaStream:
        try:
            index = int(device_id)
        except ValueError as e:
            raise OSError(f"Invalid camera device id: {device_id}") from e

        node = f"/dev/video{index}"
        if os.path.exists(node) and not os.access(node, os.R_OK | os.W_OK):
            raise PermissionError(f"No read/write access to {node}")

        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            cap.release()
            raise OSError(f"Failed to open camera device {device_id}")

        w, h = self.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_size)

        actual_w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        actual_fps = cap.get(cv2.CAP_PROP_FPS)
        logging.info(f"Camera actual settings - Resolution: ({actual_w}x{actual_h}), FPS: {actual_fps}")

        if self.warmup_seconds:
            time.sleep(self.warmup_seconds)

        track = OpenCVVideoTrack(cap, device_id, declared_capabilities=self.capabilities)
        return OpenCVMediaStream([track])
