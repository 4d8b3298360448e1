"""
Capability, settings and constraint value objects.

A CapabilityModel is a snapshot of what one camera stream claims to support.
The values are advisory: a declared capability is worth attempting, it is not
guaranteed to take effect.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Mapping, Optional


@dataclass(frozen=True)
class ZoomRange:
    """Zoom bounds reported by the device."""
    min: float
    max: float

    @property
    def is_trivial(self) -> bool:
        """True when the range does not allow any zooming."""
        return self.max <= self.min

    @classmethod
    def from_dict(cls, d: Any) -> Optional["ZoomRange"]:
        if not isinstance(d, Mapping) or not d:
            return None
        try:
            lo = float(d.get("min", 1))
            hi = float(d.get("max", lo))
        except (TypeError, ValueError):
            return None
        return cls(min=lo, max=hi)

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class ControlSet:
    """Which user controls the presentation layer should render."""
    scan: bool = True
    torch: bool = False
    zoom: bool = False


@dataclass(frozen=True)
class CapabilityModel:
    """
    Normalized description of what a camera stream can do.

    Attributes:
        zoom_range: Zoom bounds, None if the device does not support zoom.
        torch_available: Whether a torch/flash can be toggled.
        focus_modes: Supported focus strategies, empty if unsupported.
    """
    zoom_range: Optional[ZoomRange] = None
    torch_available: bool = False
    focus_modes: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "CapabilityModel":
        """
        Adapter: build from a raw capability mapping.

        Accepts the shape {"zoom": {"min", "max"}, "torch": bool,
        "focusMode": str | list[str]}. Anything missing or malformed is
        treated as unsupported.
        """
        if not isinstance(d, Mapping):
            return cls()

        focus = d.get("focusMode", d.get("focus_modes"))
        if isinstance(focus, str):
            focus_modes = frozenset([focus]) if focus else frozenset()
        elif isinstance(focus, (list, tuple, set, frozenset)):
            focus_modes = frozenset(str(m) for m in focus if m)
        else:
            focus_modes = frozenset()

        return cls(
            zoom_range=ZoomRange.from_dict(d.get("zoom")),
            torch_available=d.get("torch") is True,
            focus_modes=focus_modes,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"torch": self.torch_available}
        if self.zoom_range is not None:
            d["zoom"] = self.zoom_range.to_dict()
        if self.focus_modes:
            d["focusMode"] = sorted(self.focus_modes)
        return d

    def controls(self) -> ControlSet:
        return ControlSet(
            scan=True,
            torch=self.torch_available,
            zoom=self.zoom_range is not None,
        )


@dataclass(frozen=True)
class DesiredSettings:
    """User-chosen operating parameters. Replaced, never mutated in place."""
    torch_on: bool = False
    zoom_level: float = 1.0

    def with_torch_toggled(self) -> "DesiredSettings":
        return replace(self, torch_on=not self.torch_on)

    def with_zoom(self, zoom_level: float) -> "DesiredSettings":
        return replace(self, zoom_level=zoom_level)


@dataclass(frozen=True)
class ConstraintRequest:
    """
    Constraint values to push to a video track.

    A field left as None is not part of the request. The empty request means
    "no constraint changes needed".
    """
    focus_mode: Optional[str] = None
    torch: Optional[bool] = None
    zoom: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.focus_mode is None and self.torch is None and self.zoom is None

    def fields(self) -> Dict[str, Any]:
        """Set fields keyed by their device constraint name."""
        out: Dict[str, Any] = {}
        if self.focus_mode is not None:
            out["focusMode"] = self.focus_mode
        if self.torch is not None:
            out["torch"] = self.torch
        if self.zoom is not None:
            out["zoom"] = self.zoom
        return out

    def only(self, name: str) -> "ConstraintRequest":
        """A request carrying a single field of this one."""
        return ConstraintRequest(
            focus_mode=self.focus_mode if name == "focusMode" else None,
            torch=self.torch if name == "torch" else None,
            zoom=self.zoom if name == "zoom" else None,
        )

    def merged_with(self, other: "ConstraintRequest") -> "ConstraintRequest":
        """Fields set on `other` override the ones set here."""
        return ConstraintRequest(
            focus_mode=other.focus_mode if other.focus_mode is not None else self.focus_mode,
            torch=other.torch if other.torch is not None else self.torch,
            zoom=other.zoom if other.zoom is not None else self.zoom,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Device form: {"advanced": [{...}]}, or {} when empty."""
        fields = self.fields()
        if not fields:
            return {}
        return {"advanced": [fields]}
