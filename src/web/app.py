"""
FastAPI application factory for Person Watch.

Routes:
- /api/detections -> latest detection list
- /api/stats -> FPS, object count, person status
- /api/status -> loading / waiting_for_camera / running
- /api/snapshot.jpg, /api/stream.mjpg -> annotated preview
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from pipeline.store import DetectionResultStore
from .routes import api
from .state import PreviewState


def create_app(
    store: DetectionResultStore,
    preview: Optional[PreviewState] = None,
    stream_fps: int = 10,
) -> FastAPI:
    """Create the FastAPI app bound to the loop's result store."""
    app = FastAPI(
        title="Person Watch",
        version="0.1.0",
        description="Live camera object detection with person alerts",
    )
    app.state.store = store
    app.state.preview = preview or PreviewState()
    app.state.stream_fps = stream_fps

    app.include_router(api.router, prefix="/api")

    return app
