"""
Still-image observation source.

Yields a single frame and then detaches, so the frame driver runs exactly one
detection pass over the image and stops.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig


@dataclass
class ImageSourceConfig(ObservationConfig):
    """
    Attributes:
        path: Image file to load on open().
    """
    path: str = ""


class ImageSource(ObservationSource):
    """Serve one image (from disk or an in-memory array) as a one-frame stream."""

    def __init__(self, config: ImageSourceConfig, image: Optional[np.ndarray] = None):
        super().__init__(config)
        self._image_config = config
        self._image = image
        self._served = False

    @property
    def has_stream(self) -> bool:
        return self._is_open and not self._served

    def open(self) -> None:
        if self._is_open:
            return
        if self._image is None:
            path = self._image_config.path
            if not path or not os.path.exists(path):
                raise RuntimeError(f"Image not found: {path}")
            self._image = cv2.imread(path, cv2.IMREAD_COLOR)
            if self._image is None:
                raise RuntimeError(f"Failed to decode image: {path}")
        self._is_open = True
        self._served = False
        self._frame_index = 0
        h, w = self._image.shape[:2]
        logging.info(f"ImageSource opened: source_id={self.source_id}, size=({w}x{h})")

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._served:
            self._reset_frame_size()
            return None
        self._served = True
        self._frame_index += 1
        return self._record_frame(
            FrameData.capture(self._image, self._frame_index, source=self.source_id)
        )

    def close(self) -> None:
        self._is_open = False
        self._reset_frame_size()
