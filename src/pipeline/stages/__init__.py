"""
Pipeline stages for the presence monitor.

Each stage handles a specific part of the processing pipeline:
- detect: preprocess, inference, decode and suppression
"""

from .detect import DetectStage, DetectStageConfig

__all__ = ["DetectStage", "DetectStageConfig"]
