"""
Per-cycle state models: statistics, presence, published snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .detection import Detection, round_half_up


@dataclass(frozen=True)
class Statistics:
    """Display statistics derived from one cycle."""
    fps: int = 0
    object_count: int = 0


@dataclass(frozen=True)
class PresenceState:
    """
    Whether the target class is considered present.

    Attributes:
        is_present: True while the target was seen within the grace period.
        last_seen_at: Cycle timestamp (ms) of the last sighting, None if never seen.
    """
    is_present: bool = False
    last_seen_at: Optional[float] = None


@dataclass(frozen=True)
class ResultSnapshot:
    """Everything one cycle publishes, swapped in as a single unit."""
    detections: Tuple[Detection, ...] = ()
    stats: Statistics = field(default_factory=Statistics)
    presence: PresenceState = field(default_factory=PresenceState)
    updated_at: Optional[float] = None


def compute_fps(now_ms: float, prev_ms: Optional[float]) -> Optional[int]:
    """
    FPS from the delta between two cycle timestamps.

    Returns None when there is no previous timestamp or the delta is not
    positive.
    """
    if prev_ms is None:
        return None
    delta = now_ms - prev_ms
    if delta <= 0:
        return None
    return round_half_up(1000.0 / delta)
