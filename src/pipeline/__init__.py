"""
Pipeline module for the presence monitor.

The pipeline orchestrates the full per-frame flow:
- Frame acquisition from observation sources
- Detection (preprocess, inference, decode, suppression)
- Presence tracking
- Rendering and reporting
"""

from .engine import (
    DriverState,
    FrameDriver,
    FrameScheduler,
    PipelineConfig,
    PipelineStats,
    create_driver_from_config,
)
from .scope import FrameScope
from .stages.detect import DetectStage, DetectStageConfig, create_detect_stage

__all__ = [
    "DriverState",
    "FrameDriver",
    "FrameScheduler",
    "PipelineConfig",
    "PipelineStats",
    "create_driver_from_config",
    "FrameScope",
    "DetectStage",
    "DetectStageConfig",
    "create_detect_stage",
]
