"""
Scan orchestration: cycle controller, interval timer and the Scanner facade.
"""

from .controller import ScanControllerConfig, ScanCycleController, ScanState, ScanStats
from .scheduler import IntervalTimer
from .scanner import Scanner, ScannerConfig, create_scanner_from_config

__all__ = [
    "ScanControllerConfig",
    "ScanCycleController",
    "ScanState",
    "ScanStats",
    "IntervalTimer",
    "Scanner",
    "ScannerConfig",
    "create_scanner_from_config",
]
