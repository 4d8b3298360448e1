"""
Scan cycle controller.

Drives capture → recognize → report cycles against the live session of a
CaptureSourceManager:

    IDLE → CAPTURING → RECOGNIZING → (IDLE | STOPPED)

Triggers that arrive while a cycle is in flight are coalesced. Work that
completes after stop() or after its session was released is discarded
without emitting anything or touching the state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from capture.manager import CaptureSession, CaptureSourceManager
from capture.snapshot import FrameSnapshotter
from errors import NoFrameAvailable, RecognitionFailed
from models.recognition import RecognitionResult
from recognition.adapter import RecognitionServiceAdapter

from .scheduler import IntervalTimer

ResultCallback = Callable[[RecognitionResult], None]


class ScanState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    RECOGNIZING = "recognizing"
    STOPPED = "stopped"


@dataclass
class ScanControllerConfig:
    """
    Attributes:
        continuous: Re-trigger automatically every `interval_seconds`.
        interval_seconds: Delay between automatic triggers.
        stop_on_first_match: Stop after the first non-empty recognition.
    """
    continuous: bool = False
    interval_seconds: float = 1.0
    stop_on_first_match: bool = False


@dataclass
class ScanStats:
    """Runtime counters for the controller."""
    started: int = 0
    completed: int = 0
    coalesced: int = 0
    skipped: int = 0
    failed: int = 0
    discarded: int = 0


class ScanCycleController:
    """
    Example:
        controller = ScanCycleController(manager, FrameSnapshotter(), adapter)
        controller.add_callback(lambda result: print(result.text))
        controller.start()
        await controller.trigger()
        await controller.stop()
    """

    def __init__(
        self,
        manager: CaptureSourceManager,
        snapshotter: FrameSnapshotter,
        recognizer: RecognitionServiceAdapter,
        config: Optional[ScanControllerConfig] = None,
    ):
        self._manager = manager
        self._snapshotter = snapshotter
        self._recognizer = recognizer
        self.config = config or ScanControllerConfig()
        self.stats = ScanStats()
        self._state = ScanState.IDLE
        self._generation = 0
        self._callbacks: List[ResultCallback] = []
        self._timer: Optional[IntervalTimer] = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def continuous_active(self) -> bool:
        return self._timer is not None and self._timer.is_active

    def add_callback(self, callback: ResultCallback) -> None:
        """Register a callback invoked with every emitted RecognitionResult."""
        self._callbacks.append(callback)

    def start(self) -> None:
        """Arm the continuous-mode timer if configured. Manual triggers need no start."""
        if self._state is ScanState.STOPPED or not self.config.continuous:
            return
        if self._timer is None:
            self._timer = IntervalTimer(self.config.interval_seconds, self.trigger, name="scan-timer")
        self._timer.start()
        logging.info(f"Continuous scanning every {self.config.interval_seconds}s")

    async def trigger(self) -> Optional[RecognitionResult]:
        """
        Run one cycle.

        Returns:
            The emitted result, or None if the cycle was coalesced, skipped,
            failed or discarded.
        """
        if self._state is ScanState.STOPPED:
            logging.debug("Scan trigger ignored: controller stopped")
            return None
        if self._state in (ScanState.CAPTURING, ScanState.RECOGNIZING):
            self.stats.coalesced += 1
            logging.debug(f"Scan trigger coalesced: cycle already {self._state.value}")
            return None

        session = self._manager.session
        if session is None:
            logging.warning("Scan triggered without a live capture session")
            return None

        generation = self._generation
        self.stats.started += 1
        self._state = ScanState.CAPTURING
        try:
            return await self._run_cycle(session, generation)
        finally:
            if generation == self._generation and self._state in (ScanState.CAPTURING, ScanState.RECOGNIZING):
                self._state = ScanState.IDLE

    async def _run_cycle(self, session: CaptureSession, generation: int) -> Optional[RecognitionResult]:
        try:
            image = await self._snapshotter.snapshot(session)
        except NoFrameAvailable as e:
            self.stats.skipped += 1
            logging.debug(f"Scan cycle skipped: {e}")
            return None

        if self._is_stale(session, generation):
            self.stats.discarded += 1
            return None

        self._state = ScanState.RECOGNIZING
        try:
            result = await self._recognizer.recognize(image)
        except RecognitionFailed as e:
            self.stats.failed += 1
            logging.warning(f"Scan cycle failed: {e}")
            return None

        if self._is_stale(session, generation):
            self.stats.discarded += 1
            logging.debug("Discarding recognition result from an abandoned cycle")
            return None

        self.stats.completed += 1
        logging.info(f"Recognized text: {result.text!r}")
        self._emit(result)

        if self.config.stop_on_first_match and not result.is_empty:
            self._halt("first match")
        return result

    def _is_stale(self, session: CaptureSession, generation: int) -> bool:
        return generation != self._generation or session.released

    def _emit(self, result: RecognitionResult) -> None:
        for callback in self._callbacks:
            try:
                callback(result)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _halt(self, reason: str) -> None:
        self._generation += 1
        self._state = ScanState.STOPPED
        if self._timer is not None:
            self._timer.cancel()
        logging.info(f"Scan controller stopped ({reason})")

    async def stop(self) -> None:
        """Stop for good: cancel the timer and abandon any in-flight cycle."""
        if self._state is not ScanState.STOPPED:
            self._halt("stop requested")
        if self._timer is not None:
            await self._timer.cancel_and_wait()
