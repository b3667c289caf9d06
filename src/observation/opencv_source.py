"""
Camera, stream and video-file frames via cv2.VideoCapture.

A daemon thread grabs continuously and keeps only the newest decoded
frame; current() hands that frame out without ever blocking the event
loop. A device that cannot be opened leaves the source not-ready while
the thread keeps retrying in the background.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import FrameSource, ObservationConfig

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}

# Pause between full rounds of failed open attempts
REOPEN_DELAY_S = 5.0


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index, stream URL or video file path.
        buffer_size: Driver-side frame queue; 1 keeps live feeds current.
        max_retries: Open attempts per round, with exponential backoff.
        max_read_failures: Consecutive bad reads before the device is dropped and reopened.
        rotate: Clockwise rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror left/right after rotation.
        flip_vertical: Mirror top/bottom after rotation.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    max_read_failures: int = 3
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: build from the ``camera`` section of config.yaml."""
        resolution = camera_cfg.get("resolution")
        defaults = cls()
        return cls(
            source_id=source_id,
            resolution=tuple(resolution) if resolution else None,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", defaults.device_id),
            buffer_size=camera_cfg.get("buffer_size", defaults.buffer_size),
            max_retries=camera_cfg.get("max_retries", defaults.max_retries),
            max_read_failures=camera_cfg.get("max_read_failures", defaults.max_read_failures),
            rotate=camera_cfg.get("rotate") or 0,
            flip_horizontal=bool(camera_cfg.get("flip_horizontal", False)),
            flip_vertical=bool(camera_cfg.get("flip_vertical", False)),
        )


def _flip_code(horizontal: bool, vertical: bool) -> Optional[int]:
    if horizontal and vertical:
        return -1
    if horizontal:
        return 1
    if vertical:
        return 0
    return None


class OpenCVSource(FrameSource):
    """
    FrameSource backed by a capture thread.

    Example:
        with OpenCVSource(OpenCVSourceConfig(device_id=0, resolution=(1280, 720))) as source:
            if source.is_ready():
                frame_data = source.current()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._latest: Optional[FrameData] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._consecutive_failures = 0
        self._file_finished = False
        self._rotate_code = _ROTATIONS.get(config.rotate)
        self._flip_code = _flip_code(config.flip_horizontal, config.flip_vertical)

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return
        self._stop.clear()
        self._frame_index = 0
        self._file_finished = False
        self._is_open = True
        self._thread = threading.Thread(target=self._capture_loop, name=f"capture-{self.source_id}", daemon=True)
        self._thread.start()
        logging.info(f"Frame source opened: source_id={self.source_id}, device={self.device_id}")

    def is_ready(self) -> bool:
        return self.current() is not None

    def current(self) -> Optional[FrameData]:
        with self._lock:
            return self._latest

    def close(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self._release()
        self._publish(None)
        if self._is_open:
            logging.info(f"Frame source closed: source_id={self.source_id}")
        self._is_open = False

    def _publish(self, frame_data: Optional[FrameData]) -> None:
        with self._lock:
            self._latest = frame_data

    def _capture_loop(self) -> None:
        while not self._stop.is_set():
            if self._cap is None:
                if self._file_finished:
                    # Last frame of a finished file stays current until close()
                    self._stop.wait(0.5)
                    continue
                try:
                    self._initialize()
                except RuntimeError as e:
                    logging.error(f"{e}; retrying in {REOPEN_DELAY_S:.0f}s")
                    self._stop.wait(REOPEN_DELAY_S)
                    continue

            frame_data = self._grab()
            if frame_data is not None:
                self._publish(frame_data)
                if self.is_file:
                    self._stop.wait(self._file_frame_interval())

    def _file_frame_interval(self) -> float:
        file_fps = self._cap.get(cv2.CAP_PROP_FPS) if self._cap is not None else 0
        return 1.0 / file_fps if file_fps and file_fps > 0 else 1.0 / 30

    def _initialize(self) -> None:
        """Open the device, backing off 2s, 4s, ... (capped at 10s) between attempts."""
        self._release()
        attempts = max(1, self._opencv_config.max_retries)

        for attempt in range(attempts):
            if attempt > 0:
                delay = min(2 ** attempt, 10)
                logging.info(f"Open attempt {attempt + 1}/{attempts} for device {self.device_id} in {delay}s")
                if self._stop.wait(delay):
                    raise RuntimeError("Source closed while opening device")

            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._configure(cap)
                self._cap = cap
                self._consecutive_failures = 0
                return
            cap.release()
            logging.warning(f"Could not open device {self.device_id}")

        raise RuntimeError(f"Failed to open device {self.device_id} after {attempts} attempts")

    def _configure(self, cap: cv2.VideoCapture) -> None:
        """Request resolution and rate; only local cameras honor these."""
        cfg = self._opencv_config
        if not isinstance(self.device_id, int) or not cfg.resolution:
            return
        width, height = cfg.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)
        logging.info(
            f"Camera negotiated {cap.get(cv2.CAP_PROP_FRAME_WIDTH):.0f}x"
            f"{cap.get(cv2.CAP_PROP_FRAME_HEIGHT):.0f} @ {cap.get(cv2.CAP_PROP_FPS):.1f} FPS"
        )

    def _grab(self) -> Optional[FrameData]:
        ok, frame = self._cap.read()
        if ok and frame is not None:
            self._consecutive_failures = 0
            self._frame_index += 1
            return FrameData.from_numpy(
                self._apply_transforms(frame),
                timestamp=time.time(),
                frame_index=self._frame_index,
                source=self.source_id,
            )

        if self.is_file:
            logging.info(f"End of video file: {self.device_id}")
            self._file_finished = True
            self._release()
            return None

        self._consecutive_failures += 1
        if self._consecutive_failures < self._opencv_config.max_read_failures:
            self._stop.wait(0.05)
            return None

        logging.warning(f"{self._consecutive_failures} failed reads in a row, reopening device")
        self._release()
        self._publish(None)
        return None

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        if self._rotate_code is not None:
            frame = cv2.rotate(frame, self._rotate_code)
        if self._flip_code is not None:
            frame = cv2.flip(frame, self._flip_code)
        return frame

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "main-camera") -> OpenCVSource:
    """Build the frame source described by the ``camera`` config section."""
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
