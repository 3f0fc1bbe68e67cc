"""
Frame preprocessing for the detection model.

The frame is padded on the bottom and right only until it is square, resized
to the model's input size and normalized to [0, 1]. Padding never crops, so
the recorded ratios (padded size / source size) are always >= 1.0 and are all
that is needed to map model-space boxes back onto the source frame.
"""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from models.detection import PreprocessedInput
from models.errors import InvalidFrameError


def _as_bgr(frame: np.ndarray) -> np.ndarray:
    """Normalize grayscale / BGRA frames to 3-channel BGR."""
    if frame.ndim == 2 or (frame.ndim == 3 and frame.shape[2] == 1):
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    if frame.ndim == 3 and frame.shape[2] == 3:
        return frame
    raise InvalidFrameError(f"Unsupported frame shape {frame.shape}")


def preprocess(
    frame: np.ndarray,
    model_width: int,
    model_height: int,
    bgr_to_rgb: bool = True,
    scope=None,
) -> PreprocessedInput:
    """
    Convert a raw frame into the model's input tensor.

    Args:
        frame: Source image (H x W x C), as delivered by OpenCV.
        model_width: Model input width.
        model_height: Model input height.
        bgr_to_rgb: Swap channels to RGB before padding.
        scope: Optional FrameScope that owns the intermediate buffers.

    Returns:
        PreprocessedInput with a [1, model_height, model_width, 3] float32 tensor.

    Raises:
        InvalidFrameError: If the frame is missing or has zero width/height.
    """
    if frame is None or not isinstance(frame, np.ndarray) or frame.ndim < 2:
        raise InvalidFrameError("Frame is missing or not an image array")
    h, w = frame.shape[:2]
    if w == 0 or h == 0:
        raise InvalidFrameError(f"Frame has zero dimensions ({w}x{h})")
    if model_width <= 0 or model_height <= 0:
        raise ValueError(f"Model input size must be positive, got {model_width}x{model_height}")

    img = _as_bgr(frame)
    if bgr_to_rgb:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

    # padding image to square => [h, w] to [n, n], bottom/right only
    max_size = max(w, h)
    padded = cv2.copyMakeBorder(
        img, 0, max_size - h, 0, max_size - w, cv2.BORDER_CONSTANT, value=(0, 0, 0)
    )
    resized = cv2.resize(padded, (model_width, model_height), interpolation=cv2.INTER_LINEAR)
    tensor = np.expand_dims(resized.astype(np.float32) / 255.0, axis=0)

    if scope is not None:
        scope.track(padded)
        scope.track(resized)
        scope.track(tensor)

    return PreprocessedInput(
        tensor=tensor,
        x_ratio=max_size / w,
        y_ratio=max_size / h,
        padded_size=max_size,
        source_size=(w, h),
    )


def project_to_source(
    boxes: np.ndarray,
    prep: PreprocessedInput,
    clip: bool = False,
) -> np.ndarray:
    """
    Map model-space [y1, x1, y2, x2] boxes to source-frame pixel coordinates.

    Args:
        boxes: Array of shape [N, 4] in model-input pixel space.
        prep: The PreprocessedInput the boxes were detected on.
        clip: Clamp the result to the source frame.
    """
    return scale_to_surface(
        boxes,
        prep.ratios,
        prep.model_size,
        prep.source_size,
        clip=clip,
    )


def scale_to_surface(
    boxes: np.ndarray,
    ratios: Tuple[float, float],
    model_size: Tuple[int, int],
    surface_size: Tuple[int, int],
    clip: bool = False,
) -> np.ndarray:
    """
    Rescale model-space [y1, x1, y2, x2] boxes onto a display surface.

    The surface shows the unpadded source stretched to surface_size, so a
    model-space coordinate is first scaled by its ratio (undoing the padding)
    and then by surface/model size.
    """
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    x_ratio, y_ratio = ratios
    model_w, model_h = model_size
    surface_w, surface_h = surface_size
    sx = x_ratio * surface_w / model_w
    sy = y_ratio * surface_h / model_h
    out = boxes * np.array([sy, sx, sy, sx])
    if clip:
        out[:, 0::2] = np.clip(out[:, 0::2], 0, surface_h)
        out[:, 1::2] = np.clip(out[:, 1::2], 0, surface_w)
    return out


def model_input_size(input_shape) -> Tuple[int, int]:
    """Return (width, height) from an NHWC model input shape [1, H, W, 3]."""
    if input_shape is None or len(input_shape) != 4:
        raise ValueError(f"Expected input shape [1, H, W, 3], got {input_shape}")
    _, height, width, _ = input_shape
    return int(width), int(height)
