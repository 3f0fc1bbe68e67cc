"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class SourceConfig:
    """Frame source configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    image_path: Optional[str] = None
    resolution: Optional[List[int]] = None
    fps: Optional[int] = None
    max_retries: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            image_path=d.get("image_path"),
            resolution=d.get("resolution"),
            fps=d.get("fps"),
            max_retries=d.get("max_retries", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "device_id": self.device_id,
            "max_retries": self.max_retries,
        }
        if self.image_path is not None:
            d["image_path"] = self.image_path
        if self.resolution is not None:
            d["resolution"] = self.resolution
        if self.fps is not None:
            d["fps"] = self.fps
        return d


@dataclass
class ModelConfig:
    """Detection model configuration."""
    path: str = ""
    labels_path: str = "config/labels.yaml"
    input_shape: Optional[List[int]] = None
    input_layout: str = "nchw"
    bgr_to_rgb: bool = True
    warmup: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            path=d.get("path", ""),
            labels_path=d.get("labels_path", "config/labels.yaml"),
            input_shape=d.get("input_shape"),
            input_layout=d.get("input_layout", "nchw"),
            bgr_to_rgb=d.get("bgr_to_rgb", True),
            warmup=d.get("warmup", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "path": self.path,
            "labels_path": self.labels_path,
            "input_layout": self.input_layout,
            "bgr_to_rgb": self.bgr_to_rgb,
            "warmup": self.warmup,
        }
        if self.input_shape is not None:
            d["input_shape"] = self.input_shape
        return d


@dataclass
class SuppressionConfig:
    """Non-max suppression parameters."""
    max_output_size: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SuppressionConfig":
        return cls(
            max_output_size=d.get("max_output_size", 500),
            iou_threshold=d.get("iou_threshold", 0.45),
            score_threshold=d.get("score_threshold", 0.2),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_output_size": self.max_output_size,
            "iou_threshold": self.iou_threshold,
            "score_threshold": self.score_threshold,
        }


@dataclass
class PresenceConfig:
    """Presence tracking configuration."""
    key_prefix: str = "person_"
    identity: str = "index"
    iou_match_threshold: float = 0.3
    absence_mode: str = "since_last_seen"
    evict_after_ms: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PresenceConfig":
        return cls(
            key_prefix=d.get("key_prefix", "person_"),
            identity=d.get("identity", "index"),
            iou_match_threshold=d.get("iou_match_threshold", 0.3),
            absence_mode=d.get("absence_mode", "since_last_seen"),
            evict_after_ms=d.get("evict_after_ms"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "key_prefix": self.key_prefix,
            "identity": self.identity,
            "iou_match_threshold": self.iou_match_threshold,
            "absence_mode": self.absence_mode,
        }
        if self.evict_after_ms is not None:
            d["evict_after_ms"] = self.evict_after_ms
        return d


@dataclass
class RenderConfig:
    """Render sink configuration."""
    enabled: bool = True
    display: bool = False
    line_width: int = 2
    font_scale: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RenderConfig":
        return cls(
            enabled=d.get("enabled", True),
            display=d.get("display", False),
            line_width=d.get("line_width", 2),
            font_scale=d.get("font_scale", 0.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "display": self.display,
            "line_width": self.line_width,
            "font_scale": self.font_scale,
        }


@dataclass
class DriverConfig:
    """Frame driver configuration."""
    refresh_hz: float = 60.0
    max_consecutive_failures: int = 10
    report_interval: float = 5.0
    memory_budget_mb: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DriverConfig":
        return cls(
            refresh_hz=d.get("refresh_hz", 60.0),
            max_consecutive_failures=d.get("max_consecutive_failures", 10),
            report_interval=d.get("report_interval", 5.0),
            memory_budget_mb=d.get("memory_budget_mb"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "refresh_hz": self.refresh_hz,
            "max_consecutive_failures": self.max_consecutive_failures,
            "report_interval": self.report_interval,
        }
        if self.memory_budget_mb is not None:
            d["memory_budget_mb"] = self.memory_budget_mb
        return d


@dataclass
class WebConfig:
    """Reporting web server configuration."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 8000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    source: SourceConfig = field(default_factory=SourceConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    suppression: SuppressionConfig = field(default_factory=SuppressionConfig)
    presence: PresenceConfig = field(default_factory=PresenceConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    driver: DriverConfig = field(default_factory=DriverConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/presence_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            suppression=SuppressionConfig.from_dict(d.get("suppression", {}) or {}),
            presence=PresenceConfig.from_dict(d.get("presence", {}) or {}),
            render=RenderConfig.from_dict(d.get("render", {}) or {}),
            driver=DriverConfig.from_dict(d.get("driver", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/presence_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "source": self.source.to_dict(),
            "model": self.model.to_dict(),
            "suppression": self.suppression.to_dict(),
            "presence": self.presence.to_dict(),
            "render": self.render.to_dict(),
            "driver": self.driver.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
