from __future__ import annotations

import time
from typing import Iterable, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response, StreamingResponse

from pipeline.store import DetectionResultStore
from ..api_models import DetectionItem, DetectionsResponse, StatsResponse, StatusResponse
from ..state import PreviewState

router = APIRouter()


def _store(request: Request) -> DetectionResultStore:
    return request.app.state.store


def _preview(request: Request) -> PreviewState:
    return request.app.state.preview


def _derive_status(model_ready: bool, last_frame_age: Optional[float]) -> str:
    """
    Thresholds: model not loaded => loading; no annotated frame yet or
    none for >2s => waiting_for_camera; otherwise running.
    """
    if not model_ready:
        return "loading"
    if last_frame_age is None or last_frame_age > 2:
        return "waiting_for_camera"
    return "running"


@router.get("/detections", response_model=DetectionsResponse)
def detections(request: Request):
    snapshot = _store(request).get()
    items = [
        DetectionItem(
            class_name=d.class_name,
            score=d.score,
            confidence_pct=d.confidence_pct,
            bbox=list(d.bbox.as_int_tuple()),
        )
        for d in snapshot.detections
    ]
    return DetectionsResponse(detections=items, count=len(items), updated_at=snapshot.updated_at)


@router.get("/stats", response_model=StatsResponse)
def stats(request: Request):
    snapshot = _store(request).get()
    return StatsResponse(
        fps=snapshot.stats.fps,
        object_count=snapshot.stats.object_count,
        person_detected=snapshot.presence.is_present,
        notification_visible=_preview(request).notification_visible,
    )


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    now = time.time()
    store = _store(request)
    snapshot = store.get()
    sys_stats = _preview(request).get_system_stats_copy()

    last_frame_ts = sys_stats.get("last_frame_ts")
    last_frame_age = now - last_frame_ts if last_frame_ts else None
    start_time = sys_stats.get("start_time") or now

    return StatusResponse(
        status=_derive_status(store.model_ready, last_frame_age),
        model_ready=store.model_ready,
        last_update_age_s=now - snapshot.updated_at if snapshot.updated_at else None,
        last_frame_age_s=last_frame_age,
        uptime_seconds=int(now - start_time),
    )


@router.get("/snapshot.jpg")
def snapshot_jpeg(request: Request):
    jpg = _preview(request).get_jpeg()
    if jpg is None:
        raise HTTPException(status_code=503, detail="No frame available yet")
    return Response(content=jpg, media_type="image/jpeg")


def mjpeg_chunks(preview: PreviewState, fps: int = 10) -> Iterable[bytes]:
    """Yield MJPEG multipart chunks of the annotated preview."""
    fps = max(1, min(30, int(fps)))
    delay = 1.0 / fps
    while True:
        jpg = preview.get_jpeg()
        if jpg is not None:
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
        time.sleep(delay)


@router.get("/stream.mjpg")
def stream(request: Request):
    return StreamingResponse(
        mjpeg_chunks(_preview(request), fps=request.app.state.stream_fps),
        media_type="multipart/x-mixed-replace; boundary=frame",
    )
