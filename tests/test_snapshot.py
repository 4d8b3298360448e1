"""
Tests for the frame snapshotter.
"""

import asyncio

import pytest

from capture.manager import CaptureSourceManager
from capture.snapshot import FrameSnapshotter, SnapshotterConfig
from errors import NoFrameAvailable

from fakes import FakeMediaDevices, FakeTrack


def _session(track):
    manager = CaptureSourceManager(FakeMediaDevices(tracks={"cam0": track}))

    async def go():
        return await manager.acquire(await manager.select_device())
    return manager, asyncio.run(go())


class TestFrameSnapshotter:
    def test_scales_to_default_viewport(self, frame):
        _, session = _session(FakeTrack(frame=frame))

        still = asyncio.run(FrameSnapshotter().snapshot(session))

        assert still.size == (620, 480)
        assert still.mime_type == "image/png"
        assert still.decode().shape == (480, 620, 3)

    def test_custom_viewport_and_format(self, frame):
        _, session = _session(FakeTrack(frame=frame))
        snapshotter = FrameSnapshotter(SnapshotterConfig(viewport=(320, 240), image_format="jpg"))

        still = asyncio.run(snapshotter.snapshot(session))

        assert still.size == (320, 240)
        assert still.mime_type == "image/jpeg"

    def test_native_size_is_not_resized(self, frame):
        _, session = _session(FakeTrack(frame=frame))
        snapshotter = FrameSnapshotter(SnapshotterConfig(viewport=(640, 480)))

        still = asyncio.run(snapshotter.snapshot(session))

        assert (still.decode() == frame).all()

    def test_does_not_mutate_stream(self, frame):
        track = FakeTrack(frame=frame)
        _, session = _session(track)
        original = frame.copy()

        asyncio.run(FrameSnapshotter().snapshot(session))

        assert (track.frame == original).all()
        assert track.stop_count == 0

    def test_no_frame_yet(self):
        _, session = _session(FakeTrack(frame=None))

        with pytest.raises(NoFrameAvailable):
            asyncio.run(FrameSnapshotter().snapshot(session))

    def test_released_session(self, frame):
        manager, session = _session(FakeTrack(frame=frame))
        manager.release(session)

        with pytest.raises(NoFrameAvailable):
            asyncio.run(FrameSnapshotter().snapshot(session))
