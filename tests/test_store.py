"""
Tests for DetectionResultStore.
"""

import threading

import pytest

from conftest import person, thing
from models.stats import PresenceState, Statistics
from pipeline.store import DetectionResultStore


class TestDetectionResultStore:
    def test_initial_snapshot_is_empty(self):
        snapshot = DetectionResultStore().get()
        assert snapshot.detections == ()
        assert snapshot.stats == Statistics(fps=0, object_count=0)
        assert snapshot.presence.is_present is False
        assert snapshot.updated_at is None

    def test_set_replaces_snapshot(self):
        store = DetectionResultStore()
        detections = [person(), thing()]

        returned = store.set(detections, Statistics(fps=60, object_count=2))

        snapshot = store.get()
        assert snapshot is returned
        assert snapshot.detections == tuple(detections)
        assert snapshot.stats.fps == 60
        assert snapshot.updated_at is not None

    def test_snapshot_is_immutable(self):
        store = DetectionResultStore()
        detections = [person()]
        store.set(detections, Statistics(object_count=1))

        detections.append(thing())

        assert len(store.get().detections) == 1
        with pytest.raises(AttributeError):
            store.get().stats.fps = 5

    def test_presence_kept_when_not_given(self):
        store = DetectionResultStore()
        store.set([person()], Statistics(object_count=1), PresenceState(True, 100.0))
        store.set([], Statistics())
        assert store.get().presence == PresenceState(True, 100.0)

    def test_readers_see_whole_snapshots(self):
        store = DetectionResultStore()
        stop = threading.Event()
        mismatches = []

        def reader():
            while not stop.is_set():
                snapshot = store.get()
                if len(snapshot.detections) != snapshot.stats.object_count:
                    mismatches.append(snapshot)

        thread = threading.Thread(target=reader)
        thread.start()
        for i in range(500):
            detections = [thing()] * (i % 5)
            store.set(detections, Statistics(fps=60, object_count=len(detections)))
        stop.set()
        thread.join()

        assert mismatches == []

    def test_model_ready_flag(self):
        store = DetectionResultStore()
        assert store.model_ready is False
        store.set_model_ready(True)
        assert store.model_ready is True
