"""
Typed models for the person watch application.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox, contains_class, round_half_up
from .stats import Statistics, PresenceState, ResultSnapshot, compute_fps
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    YoloConfig,
    HogConfig,
    LoopConfig,
    AlertConfig,
    OverlayConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    "contains_class",
    "round_half_up",
    # Cycle state
    "Statistics",
    "PresenceState",
    "ResultSnapshot",
    "compute_fps",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "YoloConfig",
    "HogConfig",
    "LoopConfig",
    "AlertConfig",
    "OverlayConfig",
    "WebConfig",
]
