"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def frame():
    """A 640x480 BGR frame with a white box on black."""
    img = np.zeros((480, 640, 3), dtype=np.uint8)
    img[100:380, 120:520] = 255
    return img


@pytest.fixture
def full_capabilities():
    return {
        "zoom": {"min": 1, "max": 3},
        "torch": True,
        "focusMode": ["continuous", "single-shot"],
    }


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  resolution: [640, 480]
  fps: 30

snapshot:
  viewport: [620, 480]
  image_format: "png"

recognition:
  languages: ["eng"]
  auto_rotate: true

scan:
  continuous: false
  interval_seconds: 1.0

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "resolution": [1280, 720],
            "fps": 30,
            "capabilities": {"zoom": {"min": 1, "max": 3}, "torch": False},
        },
        "snapshot": {
            "viewport": [620, 480],
            "image_format": "png",
        },
        "recognition": {
            "languages": ["eng", "deu"],
            "auto_rotate": True,
        },
        "scan": {
            "continuous": False,
            "interval_seconds": 1.0,
            "stop_on_first_match": False,
        },
        "controls": {
            "zoom_step": 1,
            "zoom_default": 1,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
