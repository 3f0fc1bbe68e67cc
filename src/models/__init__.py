"""
Typed models for the presence monitor.

These models are the data passed between pipeline stages: frames, decoded
candidates, suppressed detections, tracked entities and configuration.
"""

from .frame import FrameData
from .detection import (
    BoundingBox,
    Candidates,
    Detection,
    FrameDetections,
    PreprocessedInput,
)
from .presence import PresenceReport, TrackedEntity
from .errors import (
    InferenceError,
    InvalidFrameError,
    PipelineError,
    ResourceExhaustionError,
)
from .config import (
    Config,
    SourceConfig,
    ModelConfig,
    SuppressionConfig,
    PresenceConfig,
    RenderConfig,
    DriverConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Candidates",
    "Detection",
    "FrameDetections",
    "PreprocessedInput",
    # Presence
    "PresenceReport",
    "TrackedEntity",
    # Errors
    "PipelineError",
    "InvalidFrameError",
    "InferenceError",
    "ResourceExhaustionError",
    # Config
    "Config",
    "SourceConfig",
    "ModelConfig",
    "SuppressionConfig",
    "PresenceConfig",
    "RenderConfig",
    "DriverConfig",
    "WebConfig",
]
