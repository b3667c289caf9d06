"""
Tests for runtime wiring.
"""

from unittest.mock import MagicMock

import pytest

from conftest import MockFrameSource, ScriptedEngine, person
from models.config import Config
from runtime.context import create_context


@pytest.fixture
def config(valid_config):
    return Config.from_dict(valid_config)


@pytest.fixture
def ctx(config):
    ctx = create_context(config)
    ctx.source = MockFrameSource(width=320, height=240)
    ctx.throttle._call_later = MagicMock()
    yield ctx
    ctx.close()


class TestCreateContext:
    def test_wires_components_from_config(self, ctx, config):
        assert ctx.notifier is None
        assert ctx.throttle.config.cooldown_ms == config.alerts.cooldown_ms
        assert ctx.renderer.target_class == "person"
        assert ctx.store.model_ready is False
        assert ctx.loop is None

    def test_attach_engine_marks_model_ready(self, ctx):
        loop = ctx.attach_engine(ScriptedEngine())

        assert ctx.loop is loop
        assert ctx.store.model_ready is True
        assert loop.config.presence_grace_ms == 1000


class TestPreview:
    @pytest.mark.asyncio
    async def test_cycle_updates_preview(self, ctx):
        loop = ctx.attach_engine(ScriptedEngine(default=[person()]))

        await loop.run_cycle(0)

        frame = ctx.preview.get_frame()
        assert frame is not None
        assert frame.shape == (240, 320, 3)
        assert ctx.preview.notification_visible is True

    @pytest.mark.asyncio
    async def test_skipped_cycle_leaves_preview(self, ctx):
        ctx.source.ready = False
        loop = ctx.attach_engine(ScriptedEngine())

        await loop.run_cycle(0)

        assert ctx.preview.get_frame() is None


class TestClose:
    def test_close_releases_everything(self, config):
        ctx = create_context(config)
        ctx.source = MockFrameSource()
        ctx.source.open()
        ctx.preview.set_notification_visible(True)

        ctx.close()

        assert ctx.source.is_open is False
        assert ctx.surface.size == (0, 0)
        assert ctx.preview.get_frame() is None
        assert ctx.throttle.notification_visible is False
