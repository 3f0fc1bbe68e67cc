"""
Decoder for YOLO-style raw model output.

The model emits one column per candidate with rows (cx, cy, w, h, class
scores...). After transposing to [batch, candidates, attributes] each
attribute is sliced as a column.
"""

from __future__ import annotations

import numpy as np

from models.detection import Candidates
from models.errors import InferenceError


def transpose_output(raw_output: np.ndarray) -> np.ndarray:
    """Transpose [b, 4 + C, N] raw output to [b, N, 4 + C]."""
    raw = np.asarray(raw_output)
    if raw.ndim == 2:
        raw = raw[np.newaxis, ...]
    if raw.ndim != 3:
        raise InferenceError(f"Expected a 3-D model output, got shape {raw.shape}")
    return np.transpose(raw, (0, 2, 1))


def decode(raw_output: np.ndarray, num_classes: int, scope=None) -> Candidates:
    """
    Decode raw model output into corner boxes, scores and class indices.

    Args:
        raw_output: Model output of shape [1, 4 + num_classes, N].
        num_classes: Length of the label table.
        scope: Optional FrameScope that owns the intermediate buffers.

    Returns:
        Candidates with boxes [N, 4] as [y1, x1, y2, x2], scores [N] and
        class_indices [N].

    Raises:
        InferenceError: If the output shape does not match num_classes.
    """
    if num_classes < 1:
        raise ValueError("num_classes must be at least 1")

    trans = transpose_output(raw_output)
    if trans.shape[0] != 1:
        raise InferenceError(f"Only batch size 1 is supported, got {trans.shape[0]}")
    if trans.shape[2] != 4 + num_classes:
        raise InferenceError(
            f"Model output has {trans.shape[2]} attributes, "
            f"expected {4 + num_classes} for {num_classes} classes"
        )

    w = trans[0, :, 2]
    h = trans[0, :, 3]
    x1 = trans[0, :, 0] - w / 2
    y1 = trans[0, :, 1] - h / 2
    boxes = np.stack([y1, x1, y1 + h, x1 + w], axis=1).astype(np.float32)

    # squeeze the batch axis only so single-class models keep a [N, 1] matrix
    raw_scores = np.squeeze(trans[:, :, 4:4 + num_classes], axis=0)
    scores = raw_scores.max(axis=1).astype(np.float32)
    class_indices = raw_scores.argmax(axis=1).astype(np.int64)

    if scope is not None:
        scope.track(trans)
        scope.track(boxes)
        scope.track(scores)
        scope.track(class_indices)

    return Candidates(boxes=boxes, scores=scores, class_indices=class_indices)
