"""
OpenCV render sink: draws labelled boxes onto a BGR numpy surface.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import cv2
import numpy as np

from detection.preprocess import scale_to_surface
from .base import NullRenderer, RenderSink

# Ultralytics color palette (hex RGB)
PALETTE = (
    "FF3838", "FF9D97", "FF701F", "FFB21D", "CFD231", "48F90A", "92CC17",
    "3DDB86", "1A9334", "00D4BB", "2C99A8", "00C2FF", "344593", "6473FF",
    "0018EC", "8438FF", "520085", "CB38FF", "FF95C8", "FF37C7",
)


def class_color(class_index: int) -> Tuple[int, int, int]:
    """BGR color for a class index."""
    h = PALETTE[int(class_index) % len(PALETTE)]
    r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    return (b, g, r)


class OpenCvRenderer(RenderSink):
    """
    Draw detections onto a surface with cv2.

    Boxes arrive in model-input space as [y1, x1, y2, x2]; they are mapped to
    the surface using the preprocessing ratios and the model input size.
    """

    def __init__(
        self,
        labels: Sequence[str],
        model_size: Tuple[int, int],
        line_width: int = 2,
        font_scale: float = 0.5,
    ):
        self.labels = list(labels)
        self.model_size = model_size
        self.line_width = max(1, int(line_width))
        self.font_scale = font_scale

    def _label(self, class_index: int, score: float) -> str:
        if 0 <= class_index < len(self.labels):
            name = self.labels[class_index]
        else:
            name = str(class_index)
        return f"{name} - {score * 100:.1f}%"

    def render(
        self,
        surface: np.ndarray,
        boxes: np.ndarray,
        scores: np.ndarray,
        class_indices: np.ndarray,
        ratios: Tuple[float, float],
    ) -> None:
        if surface is None or surface.size == 0:
            return
        surface_h, surface_w = surface.shape[:2]
        scaled = scale_to_surface(
            boxes, ratios, self.model_size, (surface_w, surface_h), clip=True
        )

        font = cv2.FONT_HERSHEY_SIMPLEX
        for box, score, class_index in zip(scaled, scores, class_indices):
            y1, x1, y2, x2 = (int(round(v)) for v in box)
            color = class_color(int(class_index))
            label = self._label(int(class_index), float(score))

            cv2.rectangle(surface, (x1, y1), (x2, y2), color, self.line_width)

            # Label with background
            (tw, th), _ = cv2.getTextSize(label, font, self.font_scale, 1)
            y_text = y1 - th - 6 if y1 - th - 6 >= 0 else y1
            cv2.rectangle(surface, (x1, y_text), (x1 + tw + 4, y_text + th + 6), color, -1)
            cv2.putText(
                surface, label, (x1 + 2, y_text + th + 2), font, self.font_scale, (255, 255, 255), 1
            )

    def clear(self, surface: np.ndarray) -> None:
        if surface is not None:
            surface[...] = 0


def create_renderer(render_cfg, labels: Sequence[str], model_size: Tuple[int, int]) -> RenderSink:
    """Build the configured render sink."""
    if not render_cfg.enabled:
        return NullRenderer()
    return OpenCvRenderer(
        labels=labels,
        model_size=model_size,
        line_width=render_cfg.line_width,
        font_scale=render_cfg.font_scale,
    )
