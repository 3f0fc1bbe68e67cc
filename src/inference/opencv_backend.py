"""
OpenCV DNN inference backend.

Loads a YOLO-style ONNX export with cv2.dnn so the project runs wherever
OpenCV does, without a separate runtime.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from models.errors import InferenceError
from .backend import InferenceEngine, warm_up

# YOLOv8 exports default to a 640x640 input
DEFAULT_INPUT_SHAPE = (1, 640, 640, 3)


@dataclass(frozen=True)
class OpenCvDnnConfig:
    model_path: str
    input_shape: Optional[Sequence[int]] = None
    input_layout: str = "nchw"
    warmup: bool = True


class OpenCvDnnEngine(InferenceEngine):
    def __init__(self, cfg: OpenCvDnnConfig):
        self.cfg = cfg
        if cfg.input_layout not in ("nchw", "nhwc"):
            raise ValueError(f"input_layout must be 'nchw' or 'nhwc', got {cfg.input_layout!r}")
        if not os.path.exists(cfg.model_path):
            raise FileNotFoundError(f"Model not found: {cfg.model_path}")

        try:
            self._net = cv2.dnn.readNetFromONNX(cfg.model_path)
        except cv2.error as e:
            raise InferenceError(f"Failed to load model {cfg.model_path}: {e}") from e

        # Input shape is fixed for the lifetime of the engine
        shape = tuple(cfg.input_shape) if cfg.input_shape else DEFAULT_INPUT_SHAPE
        if len(shape) != 4:
            raise ValueError(f"Expected input shape [1, H, W, 3], got {list(shape)}")
        self._input_shape = tuple(int(x) for x in shape)
        logging.info(f"Loaded model {cfg.model_path} (input={list(self._input_shape)})")

        if cfg.warmup:
            warm_up(self)

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return self._input_shape

    def execute(self, tensor: np.ndarray) -> np.ndarray:
        if self.cfg.input_layout == "nchw":
            blob = np.ascontiguousarray(tensor.transpose(0, 3, 1, 2))
        else:
            blob = np.ascontiguousarray(tensor)
        self._net.setInput(blob)
        try:
            return self._net.forward()
        finally:
            del blob
