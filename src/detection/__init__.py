"""
Detection post-processing.

This module turns frames into model input and raw model output into a
sparse set of detections:
- preprocess: pad to square, resize, normalize
- decoder: center boxes + class scores -> corner boxes, score, class
- suppression: greedy non-max suppression
"""

from .preprocess import preprocess, project_to_source, scale_to_surface
from .decoder import decode, transpose_output
from .suppression import iou, non_max_suppression
from .labels import load_labels

__all__ = [
    "preprocess",
    "project_to_source",
    "scale_to_surface",
    "decode",
    "transpose_output",
    "iou",
    "non_max_suppression",
    "load_labels",
]
