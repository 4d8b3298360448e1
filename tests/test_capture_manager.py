"""
Tests for device selection, acquisition, constraint application and release.
"""

import asyncio

import pytest

from capture.base import DeviceDescriptor
from capture.capabilities import extract_capabilities
from capture.manager import CaptureSourceManager
from errors import DeviceUnavailable, NoDeviceFound, PermissionDenied
from models.capability import CapabilityModel, ConstraintRequest, ZoomRange

from fakes import FakeMediaDevices, FakeStream, FakeTrack


def _acquire(manager):
    async def go():
        device = await manager.select_device()
        return await manager.acquire(device)
    return asyncio.run(go())


class TestSelectDevice:
    def test_prefers_last_enumerated(self):
        devices = FakeMediaDevices(devices=[DeviceDescriptor("camA"), DeviceDescriptor("camB")])
        manager = CaptureSourceManager(devices)

        device = asyncio.run(manager.select_device())

        assert device.device_id == "camB"

    def test_ignores_non_video_devices(self):
        devices = FakeMediaDevices(devices=[
            DeviceDescriptor("camA"),
            DeviceDescriptor("mic", kind="audioinput"),
        ])
        manager = CaptureSourceManager(devices)

        assert asyncio.run(manager.select_device()).device_id == "camA"

    def test_no_devices(self):
        devices = FakeMediaDevices(devices=[])
        manager = CaptureSourceManager(devices)

        with pytest.raises(NoDeviceFound):
            asyncio.run(manager.select_device())
        assert manager.session is None
        assert devices.opened == []

    def test_only_audio_devices(self):
        devices = FakeMediaDevices(devices=[DeviceDescriptor("mic", kind="audioinput")])
        with pytest.raises(NoDeviceFound):
            asyncio.run(CaptureSourceManager(devices).select_device())

    def test_enumeration_failure_is_device_unavailable(self):
        devices = FakeMediaDevices(enumerate_error=OSError("udev not running"))
        manager = CaptureSourceManager(devices)

        with pytest.raises(DeviceUnavailable) as exc_info:
            asyncio.run(manager.select_device())
        assert isinstance(exc_info.value.__cause__, OSError)
        assert manager.session is None

    def test_enumeration_refused_is_permission_denied(self):
        devices = FakeMediaDevices(enumerate_error=PermissionError("no access"))
        with pytest.raises(PermissionDenied):
            asyncio.run(CaptureSourceManager(devices).select_device())


class TestAcquire:
    def test_derives_capabilities(self, full_capabilities):
        track = FakeTrack(capabilities=full_capabilities)
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))

        session = _acquire(manager)

        assert session.device_id == "cam0"
        assert session.capabilities.zoom_range == ZoomRange(1, 3)
        assert session.capabilities.torch_available
        assert manager.session is session

    def test_permission_denied(self):
        manager = CaptureSourceManager(FakeMediaDevices(error=PermissionError("denied")))

        with pytest.raises(PermissionDenied) as exc_info:
            _acquire(manager)
        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert manager.session is None

    def test_device_unavailable(self):
        devices = FakeMediaDevices(error=OSError("busy"))
        manager = CaptureSourceManager(devices)

        with pytest.raises(DeviceUnavailable):
            _acquire(manager)
        assert manager.session is None
        # no automatic retry
        assert devices.opened == ["cam0"]

    def test_new_acquisition_releases_previous(self):
        devices = FakeMediaDevices()
        manager = CaptureSourceManager(devices)
        first = _acquire(manager)

        second = _acquire(manager)

        assert first.released
        assert devices.tracks["cam0"].stop_count == 1
        assert not second.released
        assert manager.session is second


class TestRelease:
    def test_release_twice_stops_once(self):
        devices = FakeMediaDevices()
        manager = CaptureSourceManager(devices)
        session = _acquire(manager)

        manager.release(session)
        manager.release(session)

        assert session.released
        assert devices.tracks["cam0"].stop_count == 1
        assert manager.session is None

    def test_track_stop_error_is_logged(self, caplog):
        track = FakeTrack()

        def boom():
            raise RuntimeError("already gone")
        track.stop = boom
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)

        manager.release(session)

        assert session.released
        assert "already gone" in caplog.text


class TestApplyConstraints:
    def test_applies_request(self, full_capabilities):
        track = FakeTrack(capabilities=full_capabilities)
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)
        request = ConstraintRequest(focus_mode="single-shot", torch=True, zoom=2)

        applied = asyncio.run(manager.apply_constraints(session, request))

        assert applied is True
        assert track.applied == [request.to_dict()]
        assert session.effective == request

    def test_empty_request_is_noop(self):
        track = FakeTrack()
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)

        assert asyncio.run(manager.apply_constraints(session, ConstraintRequest())) is False
        assert track.applied == []

    def test_released_session_is_ignored(self):
        track = FakeTrack()
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)
        manager.release(session)

        assert asyncio.run(manager.apply_constraints(session, ConstraintRequest(torch=True))) is False
        assert track.applied == []

    def test_rejected_zoom_keeps_torch(self):
        track = FakeTrack(reject=("zoom",))
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)

        async def go():
            await manager.apply_constraints(session, ConstraintRequest(torch=True, zoom=1))
            return await manager.apply_constraints(session, ConstraintRequest(torch=True, zoom=2))

        applied = asyncio.run(go())

        assert applied is True
        assert session.effective.torch is True
        assert session.effective.zoom is None
        assert {"torch": True} in track.applied_fields()
        assert all("zoom" not in entry for entry in track.applied_fields())

    def test_fully_rejected_request_keeps_previous(self):
        track = FakeTrack()
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)
        asyncio.run(manager.apply_constraints(session, ConstraintRequest(zoom=2)))

        track.reject = {"zoom"}
        applied = asyncio.run(manager.apply_constraints(session, ConstraintRequest(zoom=3)))

        assert applied is False
        assert session.effective.zoom == 2

    def test_latest_request_wins(self):
        track = FakeTrack(apply_delay=0.01)
        manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))
        session = _acquire(manager)

        async def go():
            return await asyncio.gather(*(
                manager.apply_constraints(session, ConstraintRequest(zoom=z)) for z in (1, 2, 3)
            ))

        results = asyncio.run(go())

        assert results[-1] is True
        assert session.effective.zoom == 3
        assert track.applied[-1] == ConstraintRequest(zoom=3).to_dict()
        # superseded requests never reach the device after the newest one
        assert len(track.applied) <= 2


class TestExtractCapabilities:
    def test_no_tracks(self):
        assert extract_capabilities(FakeStream([])) == CapabilityModel()

    def test_track_without_capability_accessor(self):
        class BareTrack:
            pass
        assert extract_capabilities(FakeStream([BareTrack()])) == CapabilityModel()

    def test_partial_capabilities(self):
        stream = FakeStream([FakeTrack(capabilities={"torch": True})])
        caps = extract_capabilities(stream)

        assert caps.torch_available
        assert caps.zoom_range is None
        assert caps.focus_modes == frozenset()
