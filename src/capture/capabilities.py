"""
Capability extraction from an acquired media stream.
"""

from __future__ import annotations

import logging

from models.capability import CapabilityModel

from .base import MediaStream


def extract_capabilities(stream: MediaStream) -> CapabilityModel:
    """
    Snapshot the capabilities of the stream's first video track.

    A stream without video tracks, a track without get_capabilities() or a
    capability mapping with missing fields all produce "unsupported" values.
    """
    tracks = stream.get_video_tracks() or []
    if not tracks:
        logging.debug("Stream has no video tracks, assuming no capabilities")
        return CapabilityModel()

    getter = getattr(tracks[0], "get_capabilities", None)
    if getter is None:
        return CapabilityModel()

    capabilities = CapabilityModel.from_dict(getter())
    logging.info(
        f"Capabilities: zoom={capabilities.zoom_range}, torch={capabilities.torch_available}, "
        f"focus_modes={sorted(capabilities.focus_modes)}"
    )
    return capabilities
