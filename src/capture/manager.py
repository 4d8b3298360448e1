"""
Capture source manager: device selection, stream acquisition, constraint
application and teardown.

At most one CaptureSession is live per manager. Acquiring a new session
releases the previous one first.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from errors import ConstraintRejected, DeviceUnavailable, NoDeviceFound, PermissionDenied
from models.capability import CapabilityModel, ConstraintRequest

from .base import VIDEO_INPUT, DeviceDescriptor, MediaDevices, MediaStream, VideoTrack
from .capabilities import extract_capabilities


class CaptureSession:
    """
    Live handle to an acquired camera stream and its derived capabilities.

    Capabilities are derived once at acquisition and never change for the
    lifetime of the session. `effective` holds the constraint values the
    device last accepted.
    """

    def __init__(self, device: DeviceDescriptor, stream: MediaStream, capabilities: CapabilityModel):
        self.device = device
        self.stream = stream
        self.capabilities = capabilities
        self.effective = ConstraintRequest()
        self._released = False
        self._apply_lock = asyncio.Lock()
        self._apply_seq = 0

    @property
    def device_id(self) -> str:
        return self.device.device_id

    @property
    def released(self) -> bool:
        return self._released

    @property
    def video_track(self) -> Optional[VideoTrack]:
        tracks = self.stream.get_video_tracks() or []
        return tracks[0] if tracks else None

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"CaptureSession(device={self.device_id!r}, {state})"


class CaptureSourceManager:
    """
    Owns the camera stream lifecycle for one scanner instance.

    Example:
        manager = CaptureSourceManager(OpenCVMediaDevices())
        device = await manager.select_device()
        session = await manager.acquire(device)
        await manager.apply_constraints(session, request)
        manager.release(session)
    """

    def __init__(self, devices: MediaDevices):
        self._devices = devices
        self._session: Optional[CaptureSession] = None
        self._acquire_lock = asyncio.Lock()

    @property
    def session(self) -> Optional[CaptureSession]:
        """The live session, if any."""
        if self._session is not None and self._session.released:
            return None
        return self._session

    async def select_device(self) -> DeviceDescriptor:
        """
        Pick the last enumerated video input.

        The last video input is usually the rear-facing camera; facing-mode
        metadata is not reliable enough to use instead.

        Raises:
            NoDeviceFound: If there are no video inputs.
            PermissionDenied: Platform refused to list devices.
            DeviceUnavailable: Enumeration failed for any other reason.
        """
        try:
            devices = await self._devices.enumerate_devices()
        except PermissionError as e:
            logging.error(f"Device enumeration refused: {e}")
            raise PermissionDenied(f"Device enumeration refused: {e}") from e
        except Exception as e:
            logging.error(f"Device enumeration failed: {e}")
            raise DeviceUnavailable(f"Device enumeration failed: {e}") from e

        video_inputs: List[DeviceDescriptor] = [d for d in devices if d.kind == VIDEO_INPUT]
        if not video_inputs:
            logging.error("No video input device found")
            raise NoDeviceFound("No video input device found")

        device = video_inputs[-1]
        logging.info(f"Selected video input {device.device_id} ({device.label or 'unnamed'}) "
                     f"of {len(video_inputs)} available")
        return device

    async def acquire(self, device: DeviceDescriptor) -> CaptureSession:
        """
        Open a stream on `device` and derive its capabilities.

        Raises:
            PermissionDenied: Platform refused access to the camera.
            DeviceUnavailable: Camera could not be opened.
        """
        async with self._acquire_lock:
            previous = self._session
            if previous is not None and not previous.released:
                logging.warning(f"Releasing live session on {previous.device_id} before acquiring {device.device_id}")
                self.release(previous)

            try:
                stream = await self._devices.get_stream(device.device_id)
            except PermissionError as e:
                logging.error(f"Permission denied for camera {device.device_id}: {e}")
                raise PermissionDenied(f"Permission denied for camera {device.device_id}") from e
            except Exception as e:
                logging.error(f"Failed to open camera {device.device_id}: {e}")
                raise DeviceUnavailable(f"Failed to open camera {device.device_id}: {e}") from e

            session = CaptureSession(device, stream, extract_capabilities(stream))
            self._session = session
            logging.info(f"Stream acquired on {device.device_id}")
            return session

    async def apply_constraints(self, session: CaptureSession, request: ConstraintRequest) -> bool:
        """
        Push a constraint request to the session's video track.

        Pushes are serialized per session. A request that is superseded by a
        newer one before it reaches the device is dropped. If the device
        rejects the request, each field is retried on its own so a rejected
        field does not take the others down with it.

        Returns:
            True if at least one field was applied.
        """
        if session.released or request.is_empty:
            return False

        session._apply_seq += 1
        seq = session._apply_seq

        async with session._apply_lock:
            if seq != session._apply_seq:
                logging.debug(f"Constraint request superseded: {request}")
                return False
            track = session.video_track
            if session.released or track is None:
                return False

            try:
                await self._push(track, request)
            except ConstraintRejected as e:
                logging.warning(f"Device {session.device_id} rejected {request.fields()}: {e}")
            else:
                session.effective = session.effective.merged_with(request)
                logging.debug(f"Applied constraints {request.fields()} on {session.device_id}")
                return True

            applied = False
            for name, value in request.fields().items():
                part = request.only(name)
                try:
                    await self._push(track, part)
                except ConstraintRejected:
                    kept = session.effective.fields().get(name)
                    logging.warning(f"Device {session.device_id} rejected {name}={value}, keeping {kept}")
                    continue
                session.effective = session.effective.merged_with(part)
                applied = True
            return applied

    @staticmethod
    async def _push(track: VideoTrack, request: ConstraintRequest) -> None:
        try:
            await track.apply_constraints(request.to_dict())
        except Exception as e:
            raise ConstraintRejected(str(e)) from e

    def release(self, session: CaptureSession) -> None:
        """Stop every track of the session. Safe to call multiple times."""
        if session.released:
            return
        session._released = True

        for track in session.stream.get_video_tracks() or []:
            try:
                track.stop()
            except Exception as e:
                logging.warning(f"Error stopping track on {session.device_id}: {e}")

        if self._session is session:
            self._session = None
        logging.info(f"Stream released on {session.device_id}")
