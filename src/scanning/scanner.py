"""
Scanner facade: the boundary the presentation layer talks to.

Holds the user's DesiredSettings, turns intents (scan, toggle torch, cycle
zoom) into core calls and reports which controls the device supports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from capture.backends.opencv import OpenCVMediaDevices
from capture.base import MediaDevices
from capture.constraints import ZOOM_DEFAULT, ZOOM_STEP, build_constraints, next_zoom_level
from capture.manager import CaptureSession, CaptureSourceManager
from capture.snapshot import FrameSnapshotter, SnapshotterConfig
from errors import AcquisitionError
from models.capability import CapabilityModel, ControlSet, DesiredSettings
from models.config import Config
from models.recognition import RecognitionResult
from recognition.adapter import RecognitionServiceAdapter
from recognition.backend import RecognitionOptions
from recognition.tesseract_backend import tesseract_factory

from .controller import ResultCallback, ScanControllerConfig, ScanCycleController

ErrorCallback = Callable[[AcquisitionError], None]


@dataclass
class ScannerConfig:
    zoom_step: float = ZOOM_STEP
    zoom_default: float = ZOOM_DEFAULT
    scan: ScanControllerConfig = field(default_factory=ScanControllerConfig)


class Scanner:
    """
    Example:
        scanner = create_scanner_from_config(config)
        scanner.on_result(lambda r: print(r.text))
        async with scanner:
            if scanner.controls.torch:
                await scanner.toggle_torch()
            await scanner.trigger_scan()
    """

    def __init__(
        self,
        devices: MediaDevices,
        recognizer: RecognitionServiceAdapter,
        snapshotter: Optional[FrameSnapshotter] = None,
        config: Optional[ScannerConfig] = None,
    ):
        self.config = config or ScannerConfig()
        self.manager = CaptureSourceManager(devices)
        self._snapshotter = snapshotter or FrameSnapshotter()
        self._recognizer = recognizer
        self._settings = DesiredSettings(zoom_level=self.config.zoom_default)
        self._result_callbacks: List[ResultCallback] = []
        self._error_callbacks: List[ErrorCallback] = []
        self.controller: Optional[ScanCycleController] = None
        self._lifecycle = 0

    @property
    def settings(self) -> DesiredSettings:
        return self._settings

    @property
    def capabilities(self) -> Optional[CapabilityModel]:
        session = self.manager.session
        return session.capabilities if session is not None else None

    @property
    def controls(self) -> ControlSet:
        """Controls to render. Nothing is offered until a stream is live."""
        capabilities = self.capabilities
        if capabilities is None:
            return ControlSet(scan=False)
        return capabilities.controls()

    def on_result(self, callback: ResultCallback) -> None:
        self._result_callbacks.append(callback)
        if self.controller is not None:
            self.controller.add_callback(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    async def start(self) -> Optional[CapabilityModel]:
        """
        Select a camera, acquire it and apply the initial constraints.

        A start that is overtaken by stop() or by a newer start() while it
        waits on the device releases whatever it acquired and returns None.

        Raises:
            AcquisitionError: NoDeviceFound, PermissionDenied or
                DeviceUnavailable. Reported to error callbacks once.
        """
        self._lifecycle += 1
        generation = self._lifecycle
        await self._teardown()

        try:
            if generation != self._lifecycle:
                return None
            device = await self.manager.select_device()
            if generation != self._lifecycle:
                return None
            session = await self.manager.acquire(device)
        except AcquisitionError as e:
            if generation != self._lifecycle:
                logging.debug(f"Ignoring acquisition error from a superseded start: {e}")
                return None
            logging.error(f"Scanner failed to start: {e}")
            for callback in self._error_callbacks:
                try:
                    callback(e)
                except Exception as cb_err:
                    logging.warning(f"Error callback failed: {cb_err}")
            raise

        if generation != self._lifecycle:
            self._abandon(session)
            return None

        self._settings = DesiredSettings(zoom_level=self.config.zoom_default)
        await self._apply_settings()
        if generation != self._lifecycle:
            self._abandon(session)
            return None

        controller = ScanCycleController(self.manager, self._snapshotter, self._recognizer, self.config.scan)
        for callback in self._result_callbacks:
            controller.add_callback(callback)
        self.controller = controller
        controller.start()
        return session.capabilities

    def _abandon(self, session: CaptureSession) -> None:
        logging.info(f"Start on {session.device_id} superseded, releasing stream")
        self.manager.release(session)

    async def trigger_scan(self) -> Optional[RecognitionResult]:
        if self.controller is None:
            logging.warning("Scan requested before the scanner was started")
            return None
        return await self.controller.trigger()

    async def toggle_torch(self) -> DesiredSettings:
        capabilities = self.capabilities
        if capabilities is None or not capabilities.torch_available:
            logging.debug("Torch toggle ignored: torch not available")
            return self._settings
        self._settings = self._settings.with_torch_toggled()
        logging.info(f"Torch {'on' if self._settings.torch_on else 'off'}")
        await self._apply_settings()
        return self._settings

    async def cycle_zoom(self) -> DesiredSettings:
        capabilities = self.capabilities
        if capabilities is None or capabilities.zoom_range is None:
            logging.debug("Zoom cycle ignored: zoom not available")
            return self._settings
        zoom = next_zoom_level(
            self._settings.zoom_level,
            capabilities.zoom_range,
            step=self.config.zoom_step,
            default=self.config.zoom_default,
        )
        self._settings = self._settings.with_zoom(zoom)
        logging.info(f"Zoom {zoom}")
        await self._apply_settings()
        return self._settings

    async def _apply_settings(self) -> bool:
        session = self.manager.session
        if session is None:
            return False
        # Built before the first await so it reflects the settings of this call.
        request = build_constraints(session.capabilities, self._settings)
        return await self.manager.apply_constraints(session, request)

    async def stop(self) -> None:
        """
        Stop scanning and release the camera. Safe to call multiple times,
        including while start() is still acquiring.
        """
        self._lifecycle += 1
        await self._teardown()

    async def _teardown(self) -> None:
        controller, self.controller = self.controller, None
        if controller is not None:
            await controller.stop()
        session = self.manager.session
        if session is not None:
            self.manager.release(session)

    async def __aenter__(self) -> "Scanner":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()


def create_scanner_from_config(config: Config) -> Scanner:
    """Build a Scanner on the OpenCV and Tesseract backends."""
    cam = config.camera
    devices = OpenCVMediaDevices(
        device_ids=cam.device_ids,
        resolution=tuple(cam.resolution),
        fps=cam.fps,
        buffer_size=cam.buffer_size,
        capabilities=cam.capabilities,
    )
    recognizer = RecognitionServiceAdapter(
        tesseract_factory(config.recognition.tesseract_cmd),
        RecognitionOptions(
            languages=frozenset(config.recognition.languages),
            auto_rotate=config.recognition.auto_rotate,
        ),
    )
    snapshotter = FrameSnapshotter(SnapshotterConfig(
        viewport=tuple(config.snapshot.viewport),
        image_format=config.snapshot.image_format,
    ))
    scanner_config = ScannerConfig(
        zoom_step=config.controls.zoom_step,
        zoom_default=config.controls.zoom_default,
        scan=ScanControllerConfig(
            continuous=config.scan.continuous,
            interval_seconds=config.scan.interval_seconds,
            stop_on_first_match=config.scan.stop_on_first_match,
        ),
    )
    return Scanner(devices, recognizer, snapshotter, scanner_config)
