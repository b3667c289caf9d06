"""
Detection models for object detection results.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as rounded integer (x, y, width, height) tuple."""
        return (
            round_half_up(self.x),
            round_half_up(self.y),
            round_half_up(self.width),
            round_half_up(self.height),
        )

    @classmethod
    def from_tuple(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from (x, y, width, height) tuple."""
        return cls(x=float(t[0]), y=float(t[1]), width=float(t[2]), height=float(t[3]))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """
    A single detection from an inference engine.

    Attributes:
        class_name: Class label reported by the model (e.g. "person").
        score: Confidence score (0-1).
        bbox: Bounding box in pixel coordinates of the source frame.
    """
    class_name: str
    score: float
    bbox: BoundingBox

    @property
    def confidence_pct(self) -> int:
        return round_half_up(self.score * 100)

    @property
    def label(self) -> str:
        """Overlay label, e.g. ``"person 93%"``."""
        return f"{self.class_name} {self.confidence_pct}%"

    def is_class(self, class_name: str) -> bool:
        return self.class_name == class_name

    @classmethod
    def from_xywh(
        cls,
        class_name: str,
        score: float,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> "Detection":
        return cls(
            class_name=class_name,
            score=float(score),
            bbox=BoundingBox(x=float(x), y=float(y), width=float(width), height=float(height)),
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Detection":
        """
        Adapter: build from a ``{"class", "score", "bbox": [x, y, w, h]}`` dict.
        """
        return cls(
            class_name=str(d["class"]),
            score=float(d["score"]),
            bbox=BoundingBox.from_tuple(d["bbox"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class": self.class_name,
            "score": self.score,
            "bbox": list(self.bbox.as_tuple()),
        }


def contains_class(detections: Sequence[Detection], class_name: str) -> bool:
    """True if any detection carries ``class_name``."""
    return any(d.class_name == class_name for d in detections)
