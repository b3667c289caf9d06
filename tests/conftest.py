"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time
from typing import List, Optional

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import Detection  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import FrameSource, ObservationConfig  # noqa: E402


class MockFrameSource(FrameSource):
    """Frame source whose readiness is toggled by the test."""

    def __init__(self, width: int = 640, height: int = 480, ready: bool = True):
        super().__init__(ObservationConfig(source_id="test"))
        self.width = width
        self.height = height
        self.ready = ready

    def open(self) -> None:
        self._is_open = True

    def is_ready(self) -> bool:
        return self.ready

    def current(self) -> Optional[FrameData]:
        if not self.ready:
            return None
        self._frame_index += 1
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)

    def close(self) -> None:
        self._is_open = False


class ScriptedEngine:
    """Async engine returning queued results; an Exception entry is raised."""

    def __init__(self, results: Optional[list] = None, default: Optional[List[Detection]] = None):
        self.results = list(results or [])
        self.default = default or []
        self.calls = 0

    async def detect(self, frame):
        self.calls += 1
        if self.results:
            result = self.results.pop(0)
        else:
            result = self.default
        if isinstance(result, Exception):
            raise result
        return result


class RecordingScheduler:
    """call_later stand-in that records timers and fires them on demand."""

    class Handle:
        def __init__(self, delay, callback):
            self.delay = delay
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = self.Handle(delay, callback)
        self.handles.append(handle)
        return handle

    def fire_pending(self):
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.cancelled = True
                handle.callback()


def person(score=0.93, bbox=(10, 10, 50, 80)):
    return Detection.from_xywh("person", score, *bbox)


def thing(name="cup", score=0.61, bbox=(200, 120, 40, 40)):
    return Detection.from_xywh(name, score, *bbox)


@pytest.fixture
def frame_source():
    return MockFrameSource()


@pytest.fixture
def call_later():
    return RecordingScheduler()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "hog"

loop:
  refresh_hz: 30

alerts:
  cooldown_ms: 10000
  display_ms: 2000
  audio_enabled: false

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "yolo",
            "yolo": {"model": "yolov8n.pt", "conf_threshold": 0.5},
        },
        "loop": {"refresh_hz": 60, "presence_grace_ms": 1000},
        "alerts": {"cooldown_ms": 10000, "display_ms": 2000, "audio_enabled": False},
        "overlay": {"line_width": 4, "person_fill_alpha": 0.2},
        "web": {"enabled": True, "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
