"""
Latest detection results, published once per cycle.
"""

from __future__ import annotations

import threading
import time
from typing import Optional, Sequence

from models.detection import Detection
from models.stats import PresenceState, ResultSnapshot, Statistics


class DetectionResultStore:
    """
    Holds the most recent ResultSnapshot for presentation readers.

    set() builds a new frozen snapshot and swaps it in as one reference, so
    readers see either the old or the new values, never a mix. The lock
    only guards the swap against readers on the web server thread.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = ResultSnapshot()
        self._model_ready = False

    def set(
        self,
        detections: Sequence[Detection],
        stats: Statistics,
        presence: Optional[PresenceState] = None,
    ) -> ResultSnapshot:
        with self._lock:
            snapshot = ResultSnapshot(
                detections=tuple(detections),
                stats=stats,
                presence=presence if presence is not None else self._snapshot.presence,
                updated_at=time.time(),
            )
            self._snapshot = snapshot
        return snapshot

    def get(self) -> ResultSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def model_ready(self) -> bool:
        return self._model_ready

    def set_model_ready(self, ready: bool) -> None:
        self._model_ready = ready
