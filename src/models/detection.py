"""
Detection models for the per-frame pipeline.

Boxes travel through the decoder and the suppressor as numpy arrays in
[y1, x1, y2, x2] order (model-input pixel space). The dataclasses here are the
typed views handed to tracking, rendering and reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned bounding box.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_yxyx(cls, row: Sequence[float]) -> "BoundingBox":
        """Create from a [y1, x1, y2, x2] row (decoder/suppressor order)."""
        return cls(x1=float(row[1]), y1=float(row[0]), x2=float(row[3]), y2=float(row[2]))


@dataclass
class PreprocessedInput:
    """
    Model-ready tensor for one frame.

    Attributes:
        tensor: float32 array of shape [1, model_height, model_width, 3] in [0, 1].
        x_ratio: padded square size / source width (>= 1.0).
        y_ratio: padded square size / source height (>= 1.0).
        padded_size: Side of the square the frame was padded to.
        source_size: (width, height) of the source frame.
    """
    tensor: np.ndarray
    x_ratio: float
    y_ratio: float
    padded_size: int
    source_size: Tuple[int, int]

    @property
    def ratios(self) -> Tuple[float, float]:
        return (self.x_ratio, self.y_ratio)

    @property
    def model_size(self) -> Tuple[int, int]:
        """Return (model_width, model_height)."""
        return (int(self.tensor.shape[2]), int(self.tensor.shape[1]))


@dataclass
class Candidates:
    """Decoded, unfiltered model output as parallel arrays."""
    boxes: np.ndarray  # [N, 4] as [y1, x1, y2, x2]
    scores: np.ndarray  # [N]
    class_indices: np.ndarray  # [N]

    def __len__(self) -> int:
        return int(self.scores.shape[0])


@dataclass(frozen=True)
class Detection:
    """
    A candidate that survived suppression.

    Attributes:
        bbox: Bounding box in source-frame pixels (model-input space when
            the frame size is unknown).
        confidence: Max class confidence (0-1).
        class_id: Argmax class index.
        class_name: Label table entry for class_id, if known.
        index: Position within the frame's suppressed set (selection order).
    """
    bbox: BoundingBox
    confidence: float
    class_id: int
    class_name: Optional[str] = None
    index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "class_id": self.class_id,
            "class_name": self.class_name,
            "confidence": self.confidence,
            "box": list(self.bbox.as_tuple()),
        }


@dataclass
class FrameDetections:
    """
    Final per-frame output: suppressed indices plus the gathered arrays.

    `selected` holds candidate indices in selection order (highest score first);
    `boxes`, `scores` and `class_indices` are gathered in that same order.
    `source_boxes`, when set, holds `boxes` projected onto the source frame.
    """
    selected: np.ndarray
    boxes: np.ndarray
    scores: np.ndarray
    class_indices: np.ndarray
    ratios: Tuple[float, float] = (1.0, 1.0)
    labels: Sequence[str] = field(default_factory=tuple)
    source_boxes: Optional[np.ndarray] = None

    @property
    def count(self) -> int:
        return int(self.selected.shape[0])

    def __len__(self) -> int:
        return self.count

    def to_detections(self) -> List[Detection]:
        """Convert the gathered arrays to Detection objects."""
        boxes = self.boxes if self.source_boxes is None else self.source_boxes
        out: List[Detection] = []
        for i in range(self.count):
            class_id = int(self.class_indices[i])
            class_name = self.labels[class_id] if 0 <= class_id < len(self.labels) else None
            out.append(
                Detection(
                    bbox=BoundingBox.from_yxyx(boxes[i]),
                    confidence=float(self.scores[i]),
                    class_id=class_id,
                    class_name=class_name,
                    index=i,
                )
            )
        return out
