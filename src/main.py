"""
Person Watch: live camera object detection with person alerts.

Opens the camera, loads the detection model, and runs the detection loop:
boxes are drawn over the feed and an audio/visual alert fires (at most
once per cooldown) when a person is seen.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the annotated feed in a local window ('q' quits)
    --no-web: Do not start the web interface
"""

import os
import sys
import argparse
import asyncio
import logging
import signal
import threading
import time
from typing import Any, Dict, Optional, Tuple

import cv2
import uvicorn
import yaml

from models.config import Config
from ops.logging import setup_logging
from pipeline.loop import CycleResult
from runtime.context import RuntimeContext, create_context, load_engine
from web.app import create_app


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


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if (
            os.path.exists(config_path)
            and os.path.abspath(config_path) != os.path.abspath(local_overrides_path)
            and os.path.abspath(config_path) != os.path.abspath(base_path)
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera', {})
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (path/URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Detection backend
    detection = config.get('detection', {}) or {}
    backend = detection.get('backend', 'yolo')
    if backend not in ('yolo', 'hog'):
        return False, "detection.backend must be one of: yolo, hog"
    if backend == 'yolo':
        yolo_cfg = detection.get('yolo', {}) or {}
        if 'model' in yolo_cfg and (not isinstance(yolo_cfg['model'], str) or not yolo_cfg['model']):
            return False, "detection.yolo.model must be a non-empty string"
        for key in ('conf_threshold', 'iou_threshold'):
            if key in yolo_cfg:
                value = yolo_cfg[key]
                if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                    return False, f"detection.yolo.{key} must be between 0 and 1"

    # Loop timing
    loop = config.get('loop', {}) or {}
    if 'refresh_hz' in loop:
        hz = loop['refresh_hz']
        if not isinstance(hz, (int, float)) or hz <= 0:
            return False, "loop.refresh_hz must be a positive number"
    if 'presence_grace_ms' in loop:
        grace = loop['presence_grace_ms']
        if not isinstance(grace, (int, float)) or grace < 0:
            return False, "loop.presence_grace_ms must be a non-negative number"

    # Alerts
    alerts = config.get('alerts', {}) or {}
    for key in ('cooldown_ms', 'display_ms'):
        if key in alerts:
            value = alerts[key]
            if not isinstance(value, (int, float)) or value < 0:
                return False, f"alerts.{key} must be a non-negative number"

    # Overlay
    overlay = config.get('overlay', {}) or {}
    if 'person_fill_alpha' in overlay:
        alpha = overlay['person_fill_alpha']
        if not isinstance(alpha, (int, float)) or not (0 <= alpha <= 1):
            return False, "overlay.person_fill_alpha must be between 0 and 1"
    if 'line_width' in overlay and (not isinstance(overlay['line_width'], int) or overlay['line_width'] <= 0):
        return False, "overlay.line_width must be a positive integer"

    # Web
    web = config.get('web', {}) or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be a valid TCP port"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def start_web_server(ctx: RuntimeContext) -> threading.Thread:
    web_cfg = ctx.config.web

    def run_web_app():
        uvicorn.run(
            create_app(ctx.store, ctx.preview, stream_fps=web_cfg.stream_fps),
            host=web_cfg.host,
            port=web_cfg.port,
            log_level="info",
        )

    web_thread = threading.Thread(target=run_web_app, name="web", daemon=True)
    web_thread.start()
    logging.info(f"Web interface started on port {web_cfg.port}")
    return web_thread


def make_display_callback(ctx: RuntimeContext, stop_event: asyncio.Event):
    """Show the annotated feed in a cv2 window; 'q' requests shutdown."""

    def show(result: CycleResult) -> None:
        frame = ctx.preview.get_frame()
        if frame is None:
            return
        cv2.imshow("Person Watch", frame)
        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            stop_event.set()

    return show


async def run(ctx: RuntimeContext, display: bool) -> None:
    stop_event = asyncio.Event()
    event_loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            event_loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            pass

    ctx.source.open()

    # Model load is slow; the web UI reports "loading" meanwhile.
    engine = await asyncio.to_thread(load_engine, ctx.config.detection.to_dict())
    loop = ctx.attach_engine(engine)
    if display:
        loop.add_callback(make_display_callback(ctx, stop_event))

    loop.start()
    try:
        await stop_event.wait()
    finally:
        loop.stop()


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Person Watch - live object detection with person alerts')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show the annotated feed in a local window')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the web interface')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(raw_config['log_path'], raw_config['log_level'])
    config = Config.from_dict(raw_config)

    logging.info("Starting Person Watch")

    ctx = create_context(config)
    ctx.preview.system_stats["start_time"] = time.time()
    try:
        if config.web.enabled and not args.no_web:
            start_web_server(ctx)
        asyncio.run(run(ctx, display=args.display))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        ctx.close()
        if args.display:
            cv2.destroyAllWindows()
        logging.info("Person Watch stopped")


if __name__ == "__main__":
    main()
