"""
OpenCV HOG people detector (no model download required).

Useful on machines without Ultralytics. Only ever reports the ``person``
class. HOG SVM weights are unbounded, so they are squashed into [0, 1]
with a logistic before thresholding.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

import cv2
import numpy as np

from models.detection import BoundingBox, Detection
from .backend import InferenceBackend


@dataclass(frozen=True)
class HogDetectorConfig:
    score_threshold: float = 0.5
    win_stride: int = 8
    scale: float = 1.05


def _squash(weight: float) -> float:
    return 1.0 / (1.0 + math.exp(-weight))


class HogPeopleBackend(InferenceBackend):
    def __init__(self, cfg: HogDetectorConfig):
        self.cfg = cfg
        self._hog = cv2.HOGDescriptor()
        self._hog.setSVMDetector(cv2.HOGDescriptor.getDefaultPeopleDetector())

    def detect(self, frame: np.ndarray) -> List[Detection]:
        stride = (self.cfg.win_stride, self.cfg.win_stride)
        rects, weights = self._hog.detectMultiScale(frame, winStride=stride, scale=self.cfg.scale)
        if len(rects) == 0:
            return []

        out: List[Detection] = []
        for (x, y, w, h), weight in zip(rects, np.asarray(weights).reshape(-1)):
            score = _squash(float(weight))
            if score < self.cfg.score_threshold:
                continue
            out.append(
                Detection(
                    class_name="person",
                    score=score,
                    bbox=BoundingBox(x=float(x), y=float(y), width=float(w), height=float(h)),
                )
            )
        return out
