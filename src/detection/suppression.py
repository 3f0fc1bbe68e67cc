"""
Greedy non-max suppression over [y1, x1, y2, x2] boxes.

This is the O(n^2) step of the pipeline, so the inner IoU is vectorized:
each selected box is compared against all remaining candidates at once.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

DEFAULT_MAX_OUTPUT_SIZE = 500
DEFAULT_IOU_THRESHOLD = 0.45
DEFAULT_SCORE_THRESHOLD = 0.2


def _corners(boxes: np.ndarray):
    """Return (ymin, xmin, ymax, xmax) columns regardless of corner order."""
    ymin = np.minimum(boxes[:, 0], boxes[:, 2])
    xmin = np.minimum(boxes[:, 1], boxes[:, 3])
    ymax = np.maximum(boxes[:, 0], boxes[:, 2])
    xmax = np.maximum(boxes[:, 1], boxes[:, 3])
    return ymin, xmin, ymax, xmax


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    Calculate IoU between one box and each row of `boxes`.

    Boxes with zero area have IoU 0 with everything.
    """
    box = np.asarray(box, dtype=np.float64).reshape(1, 4)
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)

    ay1, ax1, ay2, ax2 = _corners(box)
    by1, bx1, by2, bx2 = _corners(boxes)

    inter_h = np.clip(np.minimum(ay2, by2) - np.maximum(ay1, by1), 0, None)
    inter_w = np.clip(np.minimum(ax2, bx2) - np.maximum(ax1, bx1), 0, None)
    intersection = inter_h * inter_w

    area_a = (ay2 - ay1) * (ax2 - ax1)
    area_b = (by2 - by1) * (bx2 - bx1)
    union = area_a + area_b - intersection

    out = np.zeros_like(intersection)
    valid = (area_a > 0) & (area_b > 0) & (union > 0)
    out[valid] = intersection[valid] / union[valid]
    return out


def iou(box_a: Sequence[float], box_b: Sequence[float]) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Args:
        box_a: First box (y1, x1, y2, x2)
        box_b: Second box (y1, x1, y2, x2)

    Returns:
        IoU value between 0 and 1
    """
    return float(iou_one_to_many(np.asarray(box_a), np.asarray(box_b))[0])


def non_max_suppression(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_output_size: int = DEFAULT_MAX_OUTPUT_SIZE,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
    score_threshold: float = DEFAULT_SCORE_THRESHOLD,
) -> np.ndarray:
    """
    Select a sparse, non-overlapping subset of candidate boxes.

    Args:
        boxes: Array of shape [N, 4] as [y1, x1, y2, x2].
        scores: Array of shape [N].
        max_output_size: Maximum number of boxes to keep.
        iou_threshold: Boxes overlapping a selected box by more than this are discarded.
        score_threshold: Candidates scoring below this are never selected.

    Returns:
        int64 array of selected candidate indices, highest score first.
    """
    boxes = np.asarray(boxes, dtype=np.float64)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.size == 0 and scores.size == 0:
        return np.zeros((0,), dtype=np.int64)
    boxes = boxes.reshape(-1, 4)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(
            f"boxes and scores disagree on candidate count: {boxes.shape[0]} != {scores.shape[0]}"
        )
    if not 0.0 <= iou_threshold <= 1.0:
        raise ValueError(f"iou_threshold must be in [0, 1], got {iou_threshold}")
    if max_output_size < 0:
        raise ValueError(f"max_output_size must be non-negative, got {max_output_size}")

    candidates = np.flatnonzero(scores >= score_threshold)
    order = candidates[np.argsort(-scores[candidates], kind="stable")]

    selected = []
    while order.size > 0 and len(selected) < max_output_size:
        best = order[0]
        selected.append(best)
        rest = order[1:]
        if rest.size == 0:
            break
        overlaps = iou_one_to_many(boxes[best], boxes[rest])
        order = rest[overlaps <= iou_threshold]

    return np.asarray(selected, dtype=np.int64)
