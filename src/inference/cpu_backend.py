"""
CPU inference backend using Ultralytics YOLO.

COCO-trained weights (the default ``yolov8n.pt``) report the ``person``
class the alerting path keys on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from models.detection import BoundingBox, Detection
from .backend import InferenceBackend


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    classes: Optional[Sequence[int]] = None


class UltralyticsCpuBackend(InferenceBackend):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch detection.backend to 'hog'."
            ) from e

        logging.info(f"Loading YOLO model: {cfg.model}")
        self._model = YOLO(cfg.model)

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
            verbose=False,
        )
        if not results:
            return []
        return parse_ultralytics_result(results[0])


def _to_numpy(values) -> np.ndarray:
    return values.cpu().numpy() if hasattr(values, "cpu") else np.asarray(values)


def parse_ultralytics_result(result) -> List[Detection]:
    """Convert one Ultralytics ``Results`` object to Detections, keeping model order."""
    names = getattr(result, "names", None) or {}
    boxes = getattr(result, "boxes", None)
    if boxes is None:
        return []

    xyxy = _to_numpy(boxes.xyxy)
    conf = _to_numpy(boxes.conf)
    cls = _to_numpy(boxes.cls)

    out: List[Detection] = []
    for (x1, y1, x2, y2), score, k in zip(xyxy, conf, cls):
        class_id = int(k)
        out.append(
            Detection(
                class_name=str(names.get(class_id, class_id)),
                score=float(score),
                bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
            )
        )
    return out
