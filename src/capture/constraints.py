"""
Constraint builder and zoom cycling policy.

Both functions are pure: no I/O, same inputs give equal outputs.
"""

from __future__ import annotations

from typing import Optional

from models.capability import CapabilityModel, ConstraintRequest, DesiredSettings, ZoomRange

# Continuous focus is never requested.
FOCUS_MODE = "single-shot"

ZOOM_STEP = 1.0
ZOOM_DEFAULT = 1.0


def build_constraints(capabilities: CapabilityModel, desired: DesiredSettings) -> ConstraintRequest:
    """
    Project (capabilities, desired settings) into a constraint request.

    Only fields the device claims to support are included. Returns the empty
    request when nothing applies.
    """
    focus_mode = FOCUS_MODE if capabilities.focus_modes else None
    torch = desired.torch_on if capabilities.torch_available else None

    zoom = None
    zoom_range = capabilities.zoom_range
    if zoom_range is not None and not zoom_range.is_trivial:
        zoom = desired.zoom_level

    return ConstraintRequest(focus_mode=focus_mode, torch=torch, zoom=zoom)


def next_zoom_level(
    current: float,
    zoom_range: Optional[ZoomRange],
    step: float = ZOOM_STEP,
    default: float = ZOOM_DEFAULT,
) -> float:
    """Advance zoom by one step, wrapping to the default past the maximum."""
    maximum = zoom_range.max if zoom_range is not None else default
    new_zoom = current + step
    return new_zoom if new_zoom <= maximum else default
