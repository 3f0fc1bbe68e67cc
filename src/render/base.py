"""
Render sink interface.

A render sink receives the frame's final geometry and is responsible for
rescaling boxes by the preprocessing ratios and drawing them. It returns
nothing; the pipeline never reads back from it.
"""

from __future__ import annotations

from typing import List, Protocol, Tuple

import numpy as np


class RenderSink(Protocol):
    def render(
        self,
        surface: np.ndarray,
        boxes: np.ndarray,
        scores: np.ndarray,
        class_indices: np.ndarray,
        ratios: Tuple[float, float],
    ) -> None:
        ...

    def clear(self, surface: np.ndarray) -> None:
        ...


class NullRenderer(RenderSink):
    """Renderer that draws nothing; counts calls for headless runs."""

    def __init__(self):
        self.render_calls = 0
        self.clear_calls = 0

    def render(self, surface, boxes, scores, class_indices, ratios) -> None:
        self.render_calls += 1

    def clear(self, surface) -> None:
        self.clear_calls += 1


class RecordingRenderer(RenderSink):
    """Renderer that keeps a copy of every call's arguments."""

    def __init__(self):
        self.calls: List[dict] = []
        self.clear_calls = 0

    def render(self, surface, boxes, scores, class_indices, ratios) -> None:
        self.calls.append(
            {
                "surface_shape": None if surface is None else tuple(surface.shape),
                "boxes": np.array(boxes, copy=True),
                "scores": np.array(scores, copy=True),
                "class_indices": np.array(class_indices, copy=True),
                "ratios": tuple(ratios),
            }
        )

    def clear(self, surface) -> None:
        self.clear_calls += 1
