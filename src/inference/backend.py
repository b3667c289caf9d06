"""
Inference backend interfaces.

Backends return pixel-space detections in the original frame coordinate
system. Model runtimes are blocking, so the detection loop talks to them
through the asynchronous InferenceEngine contract; ThreadedInferenceEngine
adapts any blocking backend by running it on a worker thread.
"""

from __future__ import annotations

import asyncio
from typing import List, Protocol

import numpy as np

from models.detection import Detection


class InferenceBackend(Protocol):
    def detect(self, frame: np.ndarray) -> List[Detection]:
        ...


class InferenceEngine(Protocol):
    async def detect(self, frame: np.ndarray) -> List[Detection]:
        ...


class ThreadedInferenceEngine:
    """Runs a blocking backend off the event loop."""

    def __init__(self, backend: InferenceBackend):
        self.backend = backend

    async def detect(self, frame: np.ndarray) -> List[Detection]:
        return await asyncio.to_thread(self.backend.detect, frame)
