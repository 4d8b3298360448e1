"""
Error taxonomy for the scanner.

Acquisition errors are fatal for the session they belong to and are surfaced
to the caller once. Cycle errors are absorbed by the scan cycle controller.
ConstraintRejected is absorbed by the capture source manager.
"""

from __future__ import annotations


class ScannerError(Exception):
    """Base class for all scanner errors."""


class AcquisitionError(ScannerError):
    """Camera could not be selected or opened."""


class NoDeviceFound(AcquisitionError):
    """Enumeration yielded no video input devices."""


class PermissionDenied(AcquisitionError):
    """Access to the selected camera was refused by the platform."""


class DeviceUnavailable(AcquisitionError):
    """The selected camera exists but could not be opened."""


class CycleError(ScannerError):
    """A single recognition cycle failed; the next trigger may succeed."""


class NoFrameAvailable(CycleError):
    """The stream has not produced a frame yet (or is no longer live)."""


class RecognitionFailed(CycleError):
    """The recognition engine raised while processing a still image."""


class ConstraintRejected(ScannerError):
    """The device refused a constraint request."""
