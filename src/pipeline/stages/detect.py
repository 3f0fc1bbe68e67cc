"""
Detect stage: frame -> suppressed detections.

Runs preprocess, inference, decode and suppression for one frame. Every
buffer it allocates is registered with the caller's FrameScope.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from detection.decoder import decode
from detection.preprocess import preprocess, project_to_source
from detection.suppression import non_max_suppression
from inference.backend import InferenceAdapter
from models.detection import FrameDetections


@dataclass
class DetectStageConfig:
    """
    Configuration for the detect stage.

    Attributes:
        max_output_size: Maximum detections kept by suppression.
        iou_threshold: Suppression overlap threshold.
        score_threshold: Minimum candidate score.
        bgr_to_rgb: Swap channels before the frame reaches the model.
    """
    max_output_size: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2
    bgr_to_rgb: bool = True


class DetectStage:
    """Stateless per-frame detection: identical input gives identical output."""

    def __init__(self, adapter: InferenceAdapter, labels: Sequence[str], config: DetectStageConfig):
        if not labels:
            raise ValueError("Label table must not be empty")
        self.adapter = adapter
        self.labels = list(labels)
        self.config = config

    @property
    def num_classes(self) -> int:
        return len(self.labels)

    def process(self, frame: np.ndarray, scope=None) -> FrameDetections:
        model_w, model_h = self.adapter.model_size
        prep = preprocess(frame, model_w, model_h, bgr_to_rgb=self.config.bgr_to_rgb, scope=scope)
        raw = self.adapter.run(prep, scope=scope)
        result = self.postprocess(raw, prep.ratios, scope=scope)
        result.source_boxes = project_to_source(result.boxes, prep, clip=True)
        return result

    def postprocess(self, raw_output: np.ndarray, ratios=(1.0, 1.0), scope=None) -> FrameDetections:
        """Decode and suppress one raw model output."""
        candidates = decode(raw_output, self.num_classes, scope=scope)
        selected = non_max_suppression(
            candidates.boxes,
            candidates.scores,
            max_output_size=self.config.max_output_size,
            iou_threshold=self.config.iou_threshold,
            score_threshold=self.config.score_threshold,
        )
        result = FrameDetections(
            selected=selected,
            boxes=candidates.boxes[selected],
            scores=candidates.scores[selected],
            class_indices=candidates.class_indices[selected],
            ratios=tuple(ratios),
            labels=self.labels,
        )
        logging.debug(f"Decoded {len(candidates)} candidates, kept {result.count}")
        return result


def create_detect_stage(suppression_cfg, model_cfg, adapter: InferenceAdapter, labels: Sequence[str]) -> DetectStage:
    """Factory function to create a DetectStage from typed config sections."""
    return DetectStage(
        adapter=adapter,
        labels=labels,
        config=DetectStageConfig(
            max_output_size=suppression_cfg.max_output_size,
            iou_threshold=suppression_cfg.iou_threshold,
            score_threshold=suppression_cfg.score_threshold,
            bgr_to_rgb=model_cfg.bgr_to_rgb,
        ),
    )
