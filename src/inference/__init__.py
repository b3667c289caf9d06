"""
Inference layer: turns frames into Detections.
"""

from __future__ import annotations

from typing import Any, Dict

from .backend import InferenceBackend, InferenceEngine, ThreadedInferenceEngine
from .hog_backend import HogDetectorConfig, HogPeopleBackend


def create_backend_from_config(detection_cfg: Dict[str, Any]) -> InferenceBackend:
    """Instantiate the blocking backend selected by ``detection.backend``."""
    backend = detection_cfg.get("backend", "yolo")
    if backend == "yolo":
        from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend

        ycfg = detection_cfg.get("yolo", {}) or {}
        return UltralyticsCpuBackend(
            CpuYoloConfig(
                model=ycfg.get("model", "yolov8n.pt"),
                conf_threshold=float(ycfg.get("conf_threshold", 0.5)),
                iou_threshold=float(ycfg.get("iou_threshold", 0.45)),
                classes=ycfg.get("classes"),
            )
        )
    if backend == "hog":
        hcfg = detection_cfg.get("hog", {}) or {}
        return HogPeopleBackend(
            HogDetectorConfig(
                score_threshold=float(hcfg.get("score_threshold", 0.5)),
                win_stride=int(hcfg.get("win_stride", 8)),
                scale=float(hcfg.get("scale", 1.05)),
            )
        )
    raise ValueError(f"Unknown detection backend: {backend}")


def create_engine_from_config(detection_cfg: Dict[str, Any]) -> ThreadedInferenceEngine:
    return ThreadedInferenceEngine(create_backend_from_config(detection_cfg))


__all__ = [
    "InferenceBackend",
    "InferenceEngine",
    "ThreadedInferenceEngine",
    "HogDetectorConfig",
    "HogPeopleBackend",
    "create_backend_from_config",
    "create_engine_from_config",
]
