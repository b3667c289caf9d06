"""
Pipeline module for the person watch system.

The pipeline drives the real-time flow:
- Frame sampling from the frame source
- Inference and presence tracking
- Alert throttling and overlay rendering
- Publishing results for presentation
"""

from .loop import CancellationToken, CycleResult, DetectionLoop
from .presence import PresenceTracker
from .scheduler import FrameScheduler
from .store import DetectionResultStore

__all__ = [
    "DetectionLoop",
    "CancellationToken",
    "CycleResult",
    "PresenceTracker",
    "FrameScheduler",
    "DetectionResultStore",
]
