"""
Transparent drawing surface aligned with the source frame.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


class DrawingSurface:
    """
    BGRA canvas the overlay is drawn on.

    The buffer is reallocated only when the frame dimensions change; an
    all-zero buffer is fully transparent.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._buffer = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def buffer(self) -> np.ndarray:
        return self._buffer

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        h, w = self._buffer.shape[:2]
        return (w, h)

    def resize(self, width: int, height: int) -> bool:
        """Match the frame dimensions. Returns True if the buffer was reallocated."""
        if (width, height) == self.size:
            return False
        self._buffer = np.zeros((height, width, 4), dtype=np.uint8)
        return True

    def clear(self) -> None:
        self._buffer[...] = 0

    def snapshot(self) -> np.ndarray:
        return self._buffer.copy()

    def release(self) -> None:
        self._buffer = np.zeros((0, 0, 4), dtype=np.uint8)


def alpha_mask(surface: DrawingSurface) -> Optional[np.ndarray]:
    """Per-pixel opacity in [0, 1], shaped (h, w, 1); None for an empty surface."""
    buf = surface.buffer
    if buf.size == 0:
        return None
    return buf[..., 3:4].astype(np.float32) / 255.0
