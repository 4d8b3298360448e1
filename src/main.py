"""
Live-video text scanner.

Opens the camera, negotiates its capabilities and runs OCR on snapshots of
the live stream.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show a preview window (s = scan, t = torch, z = zoom, q = quit)
    --continuous: Scan automatically every --interval seconds
    --stop-on-match: Stop scanning after the first non-empty recognition
"""

import os
import sys
import argparse
import asyncio
import logging
import yaml
import cv2
from typing import Dict, Any, Tuple, Optional

from errors import AcquisitionError
from models.config import Config
from models.recognition import RecognitionResult
from ops.logging import setup_logging
from scanning.scanner import Scanner, create_scanner_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Load configuration with layering, later layers winning:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - any explicitly provided `--config` path
    - `overrides` (command-line flags)
    """
    config_dir = os.path.dirname(config_path)
    local_overrides_path = os.path.join(config_dir, "config.yaml")
    layers = [os.path.join(config_dir, "default.yaml"), local_overrides_path]
    if os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
        layers.append(config_path)

    try:
        merged: Dict[str, Any] = {}
        for path in layers:
            if os.path.exists(path):
                merged = _deep_merge(merged, _read_yaml(path))
                logging.debug(f"Merged config layer {path}")
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    return _deep_merge(merged, overrides or {})


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config overrides from command-line flags, shaped like the YAML."""
    scan: Dict[str, Any] = {}
    if args.continuous:
        scan["continuous"] = True
    if args.interval is not None:
        scan["interval_seconds"] = args.interval
    if args.stop_on_match:
        scan["stop_on_first_match"] = True
    return {"scan": scan} if scan else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'recognition', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera', {}) or {}
    backend = camera.get('backend', 'opencv')
    if backend != 'opencv':
        return False, "camera.backend must be: opencv"

    device_ids = camera.get('device_ids')
    if device_ids is not None:
        if not isinstance(device_ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) and i >= 0 for i in device_ids):
            return False, "camera.device_ids must be a list of non-negative integers"

    if 'resolution' in camera:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    capabilities = camera.get('capabilities')
    if capabilities is not None:
        if not isinstance(capabilities, dict):
            return False, "camera.capabilities must be a mapping"
        zoom = capabilities.get('zoom')
        if zoom is not None:
            if not isinstance(zoom, dict) or not _is_number(zoom.get('min')) or not _is_number(zoom.get('max')):
                return False, "camera.capabilities.zoom must have numeric min and max"
            if zoom['max'] < zoom['min']:
                return False, "camera.capabilities.zoom.max must not be below min"

    # Snapshot
    snapshot = config.get('snapshot', {}) or {}
    if 'viewport' in snapshot:
        viewport = snapshot['viewport']
        if not isinstance(viewport, list) or len(viewport) != 2 or not all(isinstance(x, int) and x > 0 for x in viewport):
            return False, "snapshot.viewport must be a list of two positive integers"
    if snapshot.get('image_format', 'png') not in ('png', 'jpg', 'jpeg'):
        return False, "snapshot.image_format must be one of: png, jpg"

    # Recognition
    recognition = config.get('recognition', {}) or {}
    languages = recognition.get('languages', ['eng'])
    if not isinstance(languages, list) or not languages or not all(isinstance(x, str) and x for x in languages):
        return False, "recognition.languages must be a non-empty list of language codes"

    # Scan policy
    scan = config.get('scan', {}) or {}
    if 'interval_seconds' in scan:
        if not _is_number(scan['interval_seconds']) or scan['interval_seconds'] <= 0:
            return False, "scan.interval_seconds must be a positive number"

    # Controls
    controls = config.get('controls', {}) or {}
    if 'zoom_step' in controls and (not _is_number(controls['zoom_step']) or controls['zoom_step'] <= 0):
        return False, "controls.zoom_step must be a positive number"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def _print_result(result: RecognitionResult) -> None:
    print(result.text if not result.is_empty else "(no text recognized)")


async def _run_display(scanner: Scanner) -> None:
    """Preview loop. Keys: s = scan, t = torch, z = zoom, q = quit."""
    controls = scanner.controls
    logging.info(f"Controls: scan=s torch={'t' if controls.torch else '-'} zoom={'z' if controls.zoom else '-'} quit=q")
    pending: Optional[asyncio.Task] = None

    while True:
        session = scanner.manager.session
        track = session.video_track if session is not None else None
        frame = track.read_frame() if track is not None else None
        if frame is not None:
            cv2.imshow('Scanner', frame)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            break
        if key == ord('s'):
            # Scans run in the background so the preview keeps updating.
            if pending is None or pending.done():
                pending = asyncio.create_task(scanner.trigger_scan())
        elif key == ord('t') and controls.torch:
            await scanner.toggle_torch()
        elif key == ord('z') and controls.zoom:
            await scanner.cycle_zoom()

        await asyncio.sleep(0.01)

    cv2.destroyAllWindows()
    if pending is not None and not pending.done():
        pending.cancel()


async def run(config: Config, display: bool) -> int:
    scanner = create_scanner_from_config(config)
    scanner.on_result(_print_result)

    try:
        await scanner.start()
    except AcquisitionError as e:
        print(f"Camera unavailable: {e}", file=sys.stderr)
        return 1

    try:
        if display:
            await _run_display(scanner)
        elif config.scan.continuous:
            while scanner.controller is not None and scanner.controller.continuous_active:
                await asyncio.sleep(0.2)
        else:
            # Give the stream a moment to produce its first frame.
            for _ in range(20):
                if await scanner.trigger_scan() is not None:
                    break
                await asyncio.sleep(0.1)
    finally:
        await scanner.stop()
    return 0


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Live-video text scanner')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show preview window with keyboard controls')
    parser.add_argument('--continuous', action='store_true',
                        help='Scan automatically at a fixed interval')
    parser.add_argument('--interval', type=float, default=None,
                        help='Seconds between automatic scans')
    parser.add_argument('--stop-on-match', action='store_true',
                        help='Stop scanning after the first non-empty recognition')
    args = parser.parse_args()

    raw = load_config(args.config, _cli_overrides(args))

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting scanner")

    try:
        sys.exit(asyncio.run(run(config, args.display)))
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
