"""
Real-time detection loop.

Each cycle samples the newest camera frame, runs inference on it, updates
person presence and the alert throttle, redraws the overlay and publishes
the results. Cycles run one at a time on the asyncio event loop, paced by
FrameScheduler, so at most one inference is ever in flight and a slow
model makes the loop skip refreshes instead of queuing them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from alerts.throttle import AlertThrottle
from inference.backend import InferenceEngine
from models.config import LoopConfig
from models.detection import Detection, contains_class
from models.frame import FrameData
from models.stats import ResultSnapshot, Statistics, compute_fps
from observation.base import FrameSource
from overlay.renderer import OverlayRenderer
from overlay.surface import DrawingSurface
from .presence import PresenceTracker
from .scheduler import FrameScheduler
from .store import DetectionResultStore


class CancellationToken:
    """One per start(); once cancelled, cycles holding it must not touch state."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass(frozen=True)
class CycleResult:
    """What one cycle did, handed to cycle callbacks."""
    timestamp: float
    frame_data: Optional[FrameData]
    detections: Tuple[Detection, ...]
    snapshot: ResultSnapshot
    inferred: bool


CycleCallback = Callable[[CycleResult], None]


class DetectionLoop:
    """
    Drives the acquire -> infer -> render -> publish cycle.

    Example:
        loop = DetectionLoop(source, engine, throttle, OverlayRenderer(),
                             DrawingSurface(), DetectionResultStore())
        loop.start()
        ...
        loop.stop()
    """

    def __init__(
        self,
        source: FrameSource,
        engine: InferenceEngine,
        throttle: AlertThrottle,
        renderer: OverlayRenderer,
        surface: DrawingSurface,
        store: DetectionResultStore,
        config: Optional[LoopConfig] = None,
        scheduler: Optional[FrameScheduler] = None,
    ):
        self.source = source
        self.engine = engine
        self.throttle = throttle
        self.renderer = renderer
        self.surface = surface
        self.store = store
        self.config = config or LoopConfig()
        self.scheduler = scheduler or FrameScheduler(self.config.refresh_hz)
        self.presence = PresenceTracker(self.config.presence_grace_ms)

        self._task: Optional[asyncio.Task] = None
        self._token: Optional[CancellationToken] = None
        self._inflight: Optional[asyncio.Future] = None
        self._prev_t: Optional[float] = None
        self._fps = 0
        self._callbacks: List[CycleCallback] = []

        self.cycle_count = 0
        self.inference_count = 0
        self.inference_failures = 0
        self._last_stats_log_time = time.monotonic()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def fps(self) -> int:
        return self._fps

    def add_callback(self, callback: CycleCallback) -> None:
        """
        Add a callback to be called after each cycle.

        Args:
            callback: Function taking the CycleResult.
        """
        self._callbacks.append(callback)

    def start(self) -> None:
        """Begin scheduling cycles on the running event loop. No-op if already running."""
        if self.running:
            return
        token = CancellationToken()
        self._token = token
        self._task = asyncio.get_running_loop().create_task(self._run(token), name="detection-loop")
        logging.info(f"Detection loop started: source={self.source.source_id}")

    def stop(self) -> None:
        """
        Cancel the pending cycle and discard any in-flight inference result.

        No cycle runs and no state changes after this returns. An engine
        call already running keeps the in-flight slot until it finishes,
        so a restart cannot overlap it.
        """
        if self._token is not None:
            self._token.cancel()
            self._token = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.scheduler.reset()

    async def _run(self, token: CancellationToken) -> None:
        self.scheduler.reset()
        try:
            while not token.cancelled:
                t = await self.scheduler.next_frame()
                if token.cancelled:
                    break
                try:
                    await self.run_cycle(t, token)
                except Exception:
                    logging.exception("Detection cycle failed")
        finally:
            logging.info(f"Detection loop stopped after {self.cycle_count} cycles")

    async def run_cycle(self, t: float, token: Optional[CancellationToken] = None) -> Optional[CycleResult]:
        """
        Run one cycle scheduled at ``t`` (milliseconds).

        Returns None when the cycle was cancelled before it could publish.
        """
        if token is None:
            if self._token is None:
                self._token = CancellationToken()
            token = self._token
        if token.cancelled:
            return None

        fps = compute_fps(t, self._prev_t)
        if fps is not None:
            self._fps = fps
        self._prev_t = t
        self.cycle_count += 1

        frame_data = self.source.current() if self.source.is_ready() else None
        if frame_data is None:
            return self._publish_unavailable(t)
        if self._inflight is not None:
            return self._publish_skipped(t)

        detections = await self._infer(frame_data)

        if token.cancelled:
            logging.debug("Discarding inference result of a stopped cycle")
            return None

        target_seen = contains_class(detections, self.config.target_class)
        self.presence.update(target_seen, t)
        if target_seen:
            self.throttle.notify(t)

        self.surface.resize(frame_data.width, frame_data.height)
        self.renderer.render(self.surface, detections)

        snapshot = self.store.set(
            detections,
            Statistics(fps=self._fps, object_count=len(detections)),
            self.presence.state,
        )
        result = CycleResult(
            timestamp=t,
            frame_data=frame_data,
            detections=snapshot.detections,
            snapshot=snapshot,
            inferred=True,
        )
        self._run_callbacks(result)
        self._handle_periodic_tasks()
        return result

    async def _infer(self, frame_data: FrameData) -> List[Detection]:
        """
        Run the engine on one frame as its own task.

        The task outlives a cancelled cycle (a worker thread cannot be
        interrupted), so the in-flight marker is cleared only when the
        engine call itself finishes.
        """
        self.inference_count += 1
        inference = asyncio.ensure_future(self.engine.detect(frame_data.frame))
        self._inflight = inference
        inference.add_done_callback(self._inference_done)
        try:
            return list(await asyncio.shield(inference))
        except Exception as e:
            self.inference_failures += 1
            logging.warning(f"Inference failed on frame {frame_data.frame_index}, treating as empty: {e}")
            return []

    def _inference_done(self, inference: asyncio.Future) -> None:
        if self._inflight is inference:
            self._inflight = None
        if not inference.cancelled() and inference.exception() is not None:
            logging.debug(f"Inference finished with error: {inference.exception()}")

    def _publish_unavailable(self, t: float) -> CycleResult:
        """No frame to look at: nothing is detected and presence decays."""
        self.presence.update(False, t)
        self.surface.clear()
        snapshot = self.store.set(
            (),
            Statistics(fps=self._fps, object_count=0),
            self.presence.state,
        )
        result = CycleResult(
            timestamp=t,
            frame_data=None,
            detections=snapshot.detections,
            snapshot=snapshot,
            inferred=False,
        )
        self._run_callbacks(result)
        return result

    def _publish_skipped(self, t: float) -> CycleResult:
        """Inference still running: keep showing the last result."""
        previous = self.store.get()
        snapshot = self.store.set(
            previous.detections,
            Statistics(fps=self._fps, object_count=len(previous.detections)),
            self.presence.state,
        )
        result = CycleResult(
            timestamp=t,
            frame_data=None,
            detections=snapshot.detections,
            snapshot=snapshot,
            inferred=False,
        )
        self._run_callbacks(result)
        return result

    def _run_callbacks(self, result: CycleResult) -> None:
        for callback in self._callbacks:
            try:
                callback(result)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _handle_periodic_tasks(self) -> None:
        now = time.monotonic()
        if now - self._last_stats_log_time >= self.config.stats_log_interval:
            snapshot = self.store.get()
            logging.info(
                f"Loop stats: cycles={self.cycle_count}, inferences={self.inference_count}, "
                f"failures={self.inference_failures}, fps={self._fps}, "
                f"objects={snapshot.stats.object_count}, person={snapshot.presence.is_present}"
            )
            self._last_stats_log_time = now
