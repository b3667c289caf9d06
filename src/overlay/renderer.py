"""
Overlay rendering for detections.

OverlayRenderer holds no per-frame state: every render() clears the
surface and redraws the given detections in order, so identical input
always produces identical pixels.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from models.config import OverlayConfig
from models.detection import Detection
from models.stats import PresenceState, Statistics
from .surface import DrawingSurface, alpha_mask

# Colors (BGR)
COLOR_PERSON = (0, 0, 255)  # #FF0000
COLOR_OTHER = (255, 255, 0)  # #00FFFF
COLOR_TEXT = (0, 0, 0)
COLOR_HUD_BG = (0, 0, 0)
COLOR_HUD_TEXT = (255, 255, 255)

FONT = cv2.FONT_HERSHEY_SIMPLEX
LABEL_PADDING = 2


def _opaque(color: Tuple[int, int, int]) -> Tuple[int, int, int, int]:
    return (color[0], color[1], color[2], 255)


class OverlayRenderer:
    """
    Draws bounding boxes and labels onto a DrawingSurface.

    Boxes of ``target_class`` are red with a translucent red fill; all other
    classes get a cyan outline and no fill. Each box carries a
    ``"{class} {pct}%"`` label on an opaque background at its top-left
    corner.
    """

    def __init__(self, config: Optional[OverlayConfig] = None, target_class: str = "person"):
        self.config = config or OverlayConfig()
        self.target_class = target_class

    def color_for(self, detection: Detection) -> Tuple[int, int, int]:
        return COLOR_PERSON if detection.class_name == self.target_class else COLOR_OTHER

    def render(self, surface: DrawingSurface, detections: Sequence[Detection]) -> int:
        """
        Clear the surface and draw ``detections``. Returns the number of boxes drawn.
        """
        surface.clear()
        canvas = surface.buffer
        drawn = 0
        for detection in detections:
            self._draw_box(canvas, detection)
            drawn += 1
        return drawn

    def _draw_box(self, canvas: np.ndarray, detection: Detection) -> None:
        x, y, w, h = detection.bbox.as_int_tuple()
        color = self.color_for(detection)
        is_target = detection.class_name == self.target_class

        cv2.rectangle(canvas, (x, y), (x + w, y + h), _opaque(color), self.config.line_width)

        if is_target and self.config.person_fill_alpha > 0:
            _blend_fill(canvas, x, y, w, h, COLOR_PERSON, self.config.person_fill_alpha)

        self._draw_label(canvas, detection.label, x, y, color)

    def _draw_label(self, canvas: np.ndarray, text: str, x: int, y: int, color: Tuple[int, int, int]) -> None:
        scale, thickness = self.config.font_scale, self.config.font_thickness
        (tw, th), baseline = cv2.getTextSize(text, FONT, scale, thickness)
        box_w = tw + 2 * LABEL_PADDING
        box_h = th + baseline + 2 * LABEL_PADDING
        cv2.rectangle(canvas, (x, y), (x + box_w, y + box_h), _opaque(color), -1)
        cv2.putText(
            canvas,
            text,
            (x + LABEL_PADDING, y + LABEL_PADDING + th),
            FONT,
            scale,
            _opaque(COLOR_TEXT),
            thickness,
            cv2.LINE_AA,
        )

    def composite(self, frame: np.ndarray, surface: DrawingSurface) -> np.ndarray:
        """Alpha-blend the surface over a BGR frame and return the result."""
        alpha = alpha_mask(surface)
        if alpha is None:
            return frame.copy()

        overlay = surface.buffer[..., :3]
        frame_h, frame_w = frame.shape[:2]
        if alpha.shape[:2] != (frame_h, frame_w):
            overlay = cv2.resize(overlay, (frame_w, frame_h), interpolation=cv2.INTER_NEAREST)
            alpha = cv2.resize(alpha, (frame_w, frame_h), interpolation=cv2.INTER_NEAREST)[..., None]

        blended = frame.astype(np.float32) * (1.0 - alpha) + overlay.astype(np.float32) * alpha
        return np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    def draw_hud(
        self,
        frame: np.ndarray,
        stats: Statistics,
        presence: PresenceState,
        notification_visible: bool = False,
    ) -> np.ndarray:
        """Draw the FPS badge, object count, presence indicator and alert banner in place."""
        frame_h, frame_w = frame.shape[:2]

        fps_text = f"{stats.fps} FPS"
        (tw, _), _ = cv2.getTextSize(fps_text, FONT, 0.6, 1)
        _badge(frame, fps_text, (frame_w - tw - 16, 12), COLOR_HUD_BG, COLOR_HUD_TEXT)

        _badge(frame, f"Objects: {stats.object_count}", (12, frame_h - 32), COLOR_HUD_BG, COLOR_HUD_TEXT)

        if presence.is_present:
            _badge(frame, "Person Detected", (12, 12), COLOR_PERSON, COLOR_HUD_TEXT)

        if notification_visible:
            text = "Person Detected!"
            (tw, _), _ = cv2.getTextSize(text, FONT, 0.8, 2)
            _badge(frame, text, ((frame_w - tw) // 2, 12), COLOR_PERSON, COLOR_HUD_TEXT, scale=0.8, thickness=2)

        return frame


def _badge(
    frame: np.ndarray,
    text: str,
    origin: Tuple[int, int],
    bg: Tuple[int, int, int],
    fg: Tuple[int, int, int],
    scale: float = 0.6,
    thickness: int = 1,
) -> None:
    x, y = origin
    (tw, th), baseline = cv2.getTextSize(text, FONT, scale, thickness)
    cv2.rectangle(frame, (x - 4, y - 4), (x + tw + 4, y + th + baseline + 4), bg, -1)
    cv2.putText(frame, text, (x, y + th), FONT, scale, fg, thickness, cv2.LINE_AA)


def _blend_fill(
    canvas: np.ndarray,
    x: int,
    y: int,
    w: int,
    h: int,
    color: Tuple[int, int, int],
    alpha: float,
) -> None:
    """Source-over fill of a rectangle on a straight-alpha BGRA canvas."""
    canvas_h, canvas_w = canvas.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, canvas_w), min(y + h, canvas_h)
    if x1 <= x0 or y1 <= y0:
        return

    region = canvas[y0:y1, x0:x1].astype(np.float32)
    dst_a = region[..., 3:4] / 255.0
    out_a = alpha + dst_a * (1.0 - alpha)
    src = np.array(color, dtype=np.float32)
    out_rgb = (src * alpha + region[..., :3] * dst_a * (1.0 - alpha)) / out_a

    region[..., :3] = out_rgb
    region[..., 3:4] = out_a * 255.0
    canvas[y0:y1, x0:x1] = np.clip(np.rint(region), 0, 255).astype(np.uint8)
