"""
The frame a source hands to the detection loop.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class FrameData:
    """
    One decoded camera frame.

    Sources publish a new FrameData per grab and never touch it again, so
    the loop and the inference thread can hold the same instance.

    Attributes:
        frame: BGR pixels, shape (height, width, 3).
        width: Intrinsic width in pixels.
        height: Intrinsic height in pixels.
        timestamp: Wall-clock time of the grab.
        frame_index: 1-based count of frames grabbed since open().
        source: source_id of the producing FrameSource.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Wrap a decoded array; dimensions come from its shape."""
        h, w = frame.shape[:2]
        return cls(frame, w, h, time.time() if timestamp is None else timestamp, frame_index, source)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def age(self, now: Optional[float] = None) -> float:
        """Seconds since the grab."""
        return (time.time() if now is None else now) - self.timestamp
