"""
FrameSource interface for pluggable live frame sources.

A frame source exposes the *current* frame rather than a stream to consume:
the detection loop samples whatever frame is newest when a cycle runs, the
same way a display samples a video element. Implementations:
- USB/CSI cameras and video files (OpenCVSource)
- Test doubles
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "main-camera").
        resolution: Target resolution as (width, height). None = use source default.
        fps: Target frames per second. None = use source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to start acquiring frames
        3. Poll is_ready() / current() as often as needed
        4. Call close() to release the device

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            if source.is_ready():
                process(source.current())
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether open() has been called and close() has not."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames acquired since open."""
        return self._frame_index

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the current frame, None when not ready."""
        frame_data = self.current()
        if frame_data is None:
            return None
        return frame_data.size

    @abstractmethod
    def open(self) -> None:
        """
        Start acquiring frames.

        A source that cannot reach its device is still considered open; it
        simply never becomes ready.
        """

    @abstractmethod
    def is_ready(self) -> bool:
        """True when a decoded frame is available from current()."""

    @abstractmethod
    def current(self) -> Optional[FrameData]:
        """Return the newest frame, or None when not ready."""

    @abstractmethod
    def close(self) -> None:
        """
        Stop acquiring and release the device.

        Safe to call multiple times.
        """

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
