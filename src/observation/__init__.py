"""
Observation layer for live frame sources.

This layer abstracts where frames come from (camera, video file, stream)
from the detection loop. Each source implements the FrameSource interface
and exposes its newest frame as FrameData.
"""

from .base import FrameSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config

__all__ = [
    "FrameSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
