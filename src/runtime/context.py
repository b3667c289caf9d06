from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from alerts.audio import AudioNotifier, create_notifier_from_config
from alerts.throttle import AlertThrottle, AlertThrottleConfig
from inference import create_engine_from_config
from inference.backend import InferenceEngine
from models.config import Config
from observation import FrameSource, create_source_from_config
from overlay.renderer import OverlayRenderer
from overlay.surface import DrawingSurface
from pipeline.loop import CycleResult, DetectionLoop
from pipeline.store import DetectionResultStore
from web.state import PreviewState


@dataclass
class RuntimeContext:
    """Owns every long-lived component and releases them in close()."""

    config: Config
    source: FrameSource
    throttle: AlertThrottle
    renderer: OverlayRenderer
    surface: DrawingSurface
    store: DetectionResultStore
    preview: PreviewState
    notifier: Optional[AudioNotifier] = None
    engine: Optional[InferenceEngine] = None
    loop: Optional[DetectionLoop] = None

    def attach_engine(self, engine: InferenceEngine) -> DetectionLoop:
        """Build the detection loop once the model is loaded."""
        self.engine = engine
        self.loop = DetectionLoop(
            source=self.source,
            engine=engine,
            throttle=self.throttle,
            renderer=self.renderer,
            surface=self.surface,
            store=self.store,
            config=self.config.loop,
        )
        self.loop.add_callback(self.update_preview)
        self.store.set_model_ready(True)
        return self.loop

    def update_preview(self, result: CycleResult) -> None:
        """Composite overlay and HUD onto the cycle's frame for the web preview."""
        if result.frame_data is None:
            return
        frame = self.renderer.composite(result.frame_data.frame, self.surface)
        self.renderer.draw_hud(
            frame,
            result.snapshot.stats,
            result.snapshot.presence,
            self.throttle.notification_visible,
        )
        self.preview.set_frame(frame)

    def close(self) -> None:
        if self.loop is not None:
            self.loop.stop()
        self.throttle.close()
        if self.notifier is not None:
            try:
                self.notifier.close()
            except Exception as e:
                logging.warning(f"Error closing audio notifier: {e}")
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        self.surface.release()
        self.preview.clear()


def create_context(config: Config) -> RuntimeContext:
    """Wire everything except the inference engine, which loads separately."""
    preview = PreviewState()
    notifier = create_notifier_from_config(config.alerts.to_dict())
    throttle = AlertThrottle(
        notifier=notifier,
        config=AlertThrottleConfig(
            cooldown_ms=config.alerts.cooldown_ms,
            display_ms=config.alerts.display_ms,
        ),
        on_change=preview.set_notification_visible,
    )
    return RuntimeContext(
        config=config,
        source=create_source_from_config(config.camera.to_dict(), source_id="main-camera"),
        throttle=throttle,
        renderer=OverlayRenderer(config.overlay, target_class=config.loop.target_class),
        surface=DrawingSurface(),
        store=DetectionResultStore(),
        preview=preview,
        notifier=notifier,
    )


def load_engine(detection_cfg: Dict[str, Any]) -> InferenceEngine:
    logging.info(f"Loading inference backend: {detection_cfg.get('backend', 'yolo')}")
    engine = create_engine_from_config(detection_cfg)
    logging.info("Inference backend ready")
    return engine
