"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    max_retries: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            max_retries=d.get("max_retries", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "max_retries": self.max_retries,
        }


@dataclass
class YoloConfig:
    """YOLO detector configuration."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "YoloConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.5),
            iou_threshold=d.get("iou_threshold", 0.45),
            classes=d.get("classes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.classes is not None:
            d["classes"] = self.classes
        return d


@dataclass
class HogConfig:
    """OpenCV HOG people detector configuration."""
    score_threshold: float = 0.5
    win_stride: int = 8
    scale: float = 1.05

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HogConfig":
        return cls(
            score_threshold=d.get("score_threshold", 0.5),
            win_stride=d.get("win_stride", 8),
            scale=d.get("scale", 1.05),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score_threshold": self.score_threshold,
            "win_stride": self.win_stride,
            "scale": self.scale,
        }


@dataclass
class DetectionConfig:
    """Inference backend selection."""
    backend: str = "yolo"
    yolo: YoloConfig = field(default_factory=YoloConfig)
    hog: HogConfig = field(default_factory=HogConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "yolo"),
            yolo=YoloConfig.from_dict(d.get("yolo") or {}),
            hog=HogConfig.from_dict(d.get("hog") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "yolo": self.yolo.to_dict(),
            "hog": self.hog.to_dict(),
        }


@dataclass
class LoopConfig:
    """Detection loop timing."""
    refresh_hz: float = 60.0
    target_class: str = "person"
    presence_grace_ms: float = 1000.0
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoopConfig":
        return cls(
            refresh_hz=float(d.get("refresh_hz", 60.0)),
            target_class=d.get("target_class", "person"),
            presence_grace_ms=float(d.get("presence_grace_ms", 1000.0)),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "refresh_hz": self.refresh_hz,
            "target_class": self.target_class,
            "presence_grace_ms": self.presence_grace_ms,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class AlertConfig:
    """Alert throttle and audio cue."""
    cooldown_ms: float = 10000.0
    display_ms: float = 2000.0
    audio_enabled: bool = False
    audio_file: str = "assets/detection-alarm.wav"
    audio_device_name: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AlertConfig":
        return cls(
            cooldown_ms=float(d.get("cooldown_ms", 10000.0)),
            display_ms=float(d.get("display_ms", 2000.0)),
            audio_enabled=d.get("audio_enabled", False),
            audio_file=d.get("audio_file", "assets/detection-alarm.wav"),
            audio_device_name=d.get("audio_device_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cooldown_ms": self.cooldown_ms,
            "display_ms": self.display_ms,
            "audio_enabled": self.audio_enabled,
            "audio_file": self.audio_file,
            "audio_device_name": self.audio_device_name,
        }


@dataclass
class OverlayConfig:
    """Overlay drawing parameters."""
    line_width: int = 4
    font_scale: float = 0.5
    font_thickness: int = 1
    person_fill_alpha: float = 0.2

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            line_width=d.get("line_width", 4),
            font_scale=d.get("font_scale", 0.5),
            font_thickness=d.get("font_thickness", 1),
            person_fill_alpha=d.get("person_fill_alpha", 0.2),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_width": self.line_width,
            "font_scale": self.font_scale,
            "font_thickness": self.font_thickness,
            "person_fill_alpha": self.person_fill_alpha,
        }


@dataclass
class WebConfig:
    """Web interface configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000
    stream_fps: int = 10

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
            stream_fps=d.get("stream_fps", 10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "host": self.host,
            "port": self.port,
            "stream_fps": self.stream_fps,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/person_watch.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            loop=LoopConfig.from_dict(d.get("loop") or {}),
            alerts=AlertConfig.from_dict(d.get("alerts") or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/person_watch.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "loop": self.loop.to_dict(),
            "alerts": self.alerts.to_dict(),
            "overlay": self.overlay.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
