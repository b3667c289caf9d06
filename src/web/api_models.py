from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class DetectionItem(BaseModel):
    class_name: str = Field(..., alias="class")
    score: float
    confidence_pct: int
    bbox: List[int] = Field(..., description="[x, y, width, height], rounded to pixels")

    model_config = {"populate_by_name": True}


class DetectionsResponse(BaseModel):
    detections: List[DetectionItem]
    count: int
    updated_at: Optional[float]


class StatsResponse(BaseModel):
    fps: int
    object_count: int
    person_detected: bool
    notification_visible: bool


class StatusResponse(BaseModel):
    status: str = Field(..., description="loading|waiting_for_camera|running")
    model_ready: bool
    last_update_age_s: Optional[float] = Field(None, description="Seconds since the last published cycle")
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since the last preview frame")
    uptime_seconds: int
