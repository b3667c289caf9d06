"""
Tests for the detection loop cycle.
"""

import asyncio
import threading
from unittest.mock import MagicMock, patch

import pytest

from alerts.throttle import AlertThrottle
from conftest import MockFrameSource, ScriptedEngine, person, thing
from inference.backend import ThreadedInferenceEngine
from models.config import LoopConfig
from overlay.renderer import OverlayRenderer
from overlay.surface import DrawingSurface
from pipeline.loop import DetectionLoop
from pipeline.store import DetectionResultStore


def make_loop(source=None, engine=None, call_later=None, config=None):
    throttle = AlertThrottle(call_later=call_later or MagicMock())
    return DetectionLoop(
        source=source or MockFrameSource(),
        engine=engine or ScriptedEngine(),
        throttle=throttle,
        renderer=OverlayRenderer(),
        surface=DrawingSurface(),
        store=DetectionResultStore(),
        config=config,
    )


class GatedEngine:
    """Engine whose detect() blocks until release() is called."""

    def __init__(self, result):
        self.result = result
        self.started = asyncio.Event()
        self._gate = asyncio.Event()
        self.calls = 0

    def release(self):
        self._gate.set()

    async def detect(self, frame):
        self.calls += 1
        self.started.set()
        await self._gate.wait()
        return self.result


class BlockingBackend:
    """Sync backend that holds its worker thread until the gate opens."""

    def __init__(self):
        self.gate = threading.Event()
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.calls = 0

    def detect(self, frame):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.peak = max(self.peak, self.active)
        self.gate.wait(timeout=5)
        with self._lock:
            self.active -= 1
        return [thing()]


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_publishes_detections_and_stats(self):
        engine = ScriptedEngine(default=[person(), thing()])
        loop = make_loop(engine=engine)

        result = await loop.run_cycle(0)

        snapshot = loop.store.get()
        assert result.inferred is True
        assert len(snapshot.detections) == 2
        assert snapshot.stats.object_count == 2
        assert snapshot.updated_at is not None

    @pytest.mark.asyncio
    async def test_first_cycle_reports_zero_fps(self):
        loop = make_loop()
        await loop.run_cycle(1000)
        assert loop.store.get().stats.fps == 0

    @pytest.mark.asyncio
    async def test_fps_from_cycle_delta(self):
        loop = make_loop()
        await loop.run_cycle(1000)
        await loop.run_cycle(1016)
        # round(1000 / 16) = round(62.5) = 63
        assert loop.store.get().stats.fps == 63

        await loop.run_cycle(1049.3)
        assert loop.store.get().stats.fps == 30

    @pytest.mark.asyncio
    async def test_fps_kept_on_non_positive_delta(self):
        loop = make_loop()
        await loop.run_cycle(1000)
        await loop.run_cycle(1020)
        await loop.run_cycle(1020)
        assert loop.fps == 50

    @pytest.mark.asyncio
    async def test_not_ready_source_skips_inference(self):
        source = MockFrameSource(ready=False)
        engine = ScriptedEngine(default=[person()])
        loop = make_loop(source=source, engine=engine)

        result = await loop.run_cycle(0)

        assert engine.calls == 0
        assert result.inferred is False
        assert loop.store.get().detections == ()
        assert loop.surface.size == (0, 0)

    @pytest.mark.asyncio
    async def test_not_ready_publishes_no_detections(self):
        source = MockFrameSource()
        engine = ScriptedEngine(default=[thing()])
        loop = make_loop(source=source, engine=engine)

        await loop.run_cycle(0)
        source.ready = False
        result = await loop.run_cycle(20)

        snapshot = loop.store.get()
        assert engine.calls == 1
        assert result.inferred is False
        assert snapshot.detections == ()
        assert snapshot.stats.object_count == 0
        assert snapshot.stats.fps == 50

    @pytest.mark.asyncio
    async def test_presence_decays_while_source_unavailable(self):
        source = MockFrameSource()
        loop = make_loop(
            source=source,
            engine=ScriptedEngine(default=[person()]),
            config=LoopConfig(presence_grace_ms=1000),
        )

        await loop.run_cycle(0)
        assert loop.store.get().presence.is_present is True
        source.ready = False

        await loop.run_cycle(500)
        snapshot = loop.store.get()
        assert snapshot.detections == ()
        assert snapshot.presence.is_present is True

        await loop.run_cycle(1001)
        snapshot = loop.store.get()
        assert snapshot.detections == ()
        assert snapshot.presence.is_present is False
        assert not loop.surface.buffer.any()

        await loop.run_cycle(60000)
        assert loop.store.get().presence.is_present is False
        assert loop.throttle.fire_count == 1

    @pytest.mark.asyncio
    async def test_inference_failure_yields_empty_result(self):
        engine = ScriptedEngine(results=[[thing()], RuntimeError("model crashed"), [thing(), thing("dog")]])
        loop = make_loop(engine=engine)

        await loop.run_cycle(0)
        await loop.run_cycle(16)
        assert loop.store.get().detections == ()
        assert loop.inference_failures == 1

        await loop.run_cycle(32)
        assert loop.store.get().stats.object_count == 2

    @pytest.mark.asyncio
    async def test_person_notifies_throttle(self):
        loop = make_loop(engine=ScriptedEngine(default=[person()]))

        with patch.object(loop.throttle, "notify", wraps=loop.throttle.notify) as notify:
            await loop.run_cycle(0)
            await loop.run_cycle(16)

        assert notify.call_count == 2
        notify.assert_called_with(16)
        assert loop.throttle.fire_count == 1

    @pytest.mark.asyncio
    async def test_other_classes_do_not_notify(self):
        loop = make_loop(engine=ScriptedEngine(default=[thing(), thing("dog")]))

        with patch.object(loop.throttle, "notify") as notify:
            await loop.run_cycle(0)

        notify.assert_not_called()
        assert loop.store.get().presence.is_present is False

    @pytest.mark.asyncio
    async def test_presence_published_with_grace(self):
        engine = ScriptedEngine(results=[[person()]], default=[])
        loop = make_loop(engine=engine, config=LoopConfig(presence_grace_ms=1000))

        await loop.run_cycle(0)
        assert loop.store.get().presence.is_present is True

        await loop.run_cycle(500)
        assert loop.store.get().presence.is_present is True

        await loop.run_cycle(1001)
        assert loop.store.get().presence.is_present is False

    @pytest.mark.asyncio
    async def test_surface_matches_frame_size(self):
        loop = make_loop(source=MockFrameSource(width=320, height=240))
        await loop.run_cycle(0)
        assert loop.surface.size == (320, 240)

    @pytest.mark.asyncio
    async def test_overlay_rendered_each_cycle(self):
        loop = make_loop(engine=ScriptedEngine(results=[[person()]], default=[]))

        await loop.run_cycle(0)
        assert loop.surface.buffer[..., 3].any()

        await loop.run_cycle(16)
        assert not loop.surface.buffer.any()

    @pytest.mark.asyncio
    async def test_callbacks_receive_result(self):
        loop = make_loop(engine=ScriptedEngine(default=[thing()]))
        results = []
        loop.add_callback(results.append)

        await loop.run_cycle(0)

        assert len(results) == 1
        assert results[0].frame_data is not None
        assert results[0].snapshot.stats.object_count == 1

    @pytest.mark.asyncio
    async def test_callback_error_does_not_break_cycle(self):
        loop = make_loop()
        seen = []

        def bad_callback(result):
            raise ValueError("display closed")

        loop.add_callback(bad_callback)
        loop.add_callback(seen.append)

        result = await loop.run_cycle(0)

        assert result is not None
        assert len(seen) == 1


class TestInFlight:
    @pytest.mark.asyncio
    async def test_cycle_during_inference_does_not_infer(self):
        engine = GatedEngine([person()])
        loop = make_loop(engine=engine)

        first = asyncio.create_task(loop.run_cycle(0))
        await engine.started.wait()

        skipped = await loop.run_cycle(16)
        assert skipped.inferred is False
        assert engine.calls == 1

        engine.release()
        result = await first
        assert result.inferred is True
        assert loop.store.get().stats.object_count == 1

    @pytest.mark.asyncio
    async def test_stop_discards_inflight_result(self):
        engine = GatedEngine([person(), thing()])
        loop = make_loop(engine=engine)

        pending = asyncio.create_task(loop.run_cycle(0))
        await engine.started.wait()

        loop.stop()
        engine.release()
        result = await pending

        assert result is None
        assert loop.store.get().detections == ()
        assert loop.store.get().updated_at is None
        assert loop.throttle.fire_count == 0
        assert loop.presence.state.is_present is False

    @pytest.mark.asyncio
    async def test_new_start_after_stop_is_not_blocked(self):
        engine = GatedEngine([thing()])
        loop = make_loop(engine=engine)

        pending = asyncio.create_task(loop.run_cycle(0))
        await engine.started.wait()
        loop.stop()

        engine.release()
        await pending

        result = await loop.run_cycle(16)
        assert result.inferred is True

    @pytest.mark.asyncio
    async def test_cycle_after_stop_waits_for_running_inference(self):
        engine = GatedEngine([thing()])
        loop = make_loop(engine=engine)

        pending = asyncio.create_task(loop.run_cycle(0))
        await engine.started.wait()
        loop.stop()

        skipped = await loop.run_cycle(16)
        assert skipped.inferred is False
        assert engine.calls == 1

        engine.release()
        assert await pending is None

    @pytest.mark.asyncio
    async def test_restart_never_overlaps_worker_thread(self):
        backend = BlockingBackend()
        loop = make_loop(engine=ThreadedInferenceEngine(backend))

        try:
            loop.start()
            await asyncio.sleep(0.05)
            loop.stop()
            loop.start()
            await asyncio.sleep(0.1)

            assert backend.calls == 1
            assert backend.peak == 1
        finally:
            backend.gate.set()
            loop.stop()
            for _ in range(100):
                if backend.active == 0 and loop._inflight is None:
                    break
                await asyncio.sleep(0.01)

        assert backend.peak == 1


class TestStartStop:
    @pytest.mark.asyncio
    async def test_start_runs_cycles_until_stopped(self):
        loop = make_loop(engine=ScriptedEngine(default=[thing()]))

        loop.start()
        assert loop.running is True
        await asyncio.sleep(0.1)
        loop.stop()

        assert loop.running is False
        count = loop.cycle_count
        assert count > 0

        await asyncio.sleep(0.05)
        assert loop.cycle_count == count

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        loop = make_loop()

        loop.start()
        task = loop._task
        loop.start()

        assert loop._task is task
        loop.stop()

    @pytest.mark.asyncio
    async def test_stop_before_start(self):
        loop = make_loop()
        loop.stop()
        assert loop.running is False

    @pytest.mark.asyncio
    async def test_restart(self):
        loop = make_loop()
        loop.start()
        await asyncio.sleep(0.03)
        loop.stop()

        loop.start()
        assert loop.running is True
        await asyncio.sleep(0.03)
        loop.stop()
        assert loop.running is False
