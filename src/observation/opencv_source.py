"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- IP camera streams (device_id as str URL)
- Video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig

MAX_READ_FAILURES = 3


def describe_device(device_id: Union[int, str]) -> str:
    """Device id safe for logs: credentials are stripped from URLs."""
    if isinstance(device_id, str) and "://" in device_id:
        parsed = urlparse(device_id)
        if parsed.username or parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc += f":{parsed.port}"
            return parsed._replace(netloc=netloc).geturl()
    return str(device_id)


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index, stream URL or video file path.
        buffer_size: Capture buffer frames; 1 keeps live feeds current.
        max_retries: Open attempts before giving up on the device.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3

    @classmethod
    def from_source_config(cls, source_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Build from the `source` section of the application config."""
        resolution = source_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=source_cfg.get("fps"),
            device_id=source_cfg.get("device_id", 0),
            buffer_size=source_cfg.get("buffer_size", 1),
            max_retries=source_cfg.get("max_retries", 3),
        )



class OpenCVSource(ObservationSource):
    """
    Camera, stream or video file read through cv2.VideoCapture.

    A file detaches after its last frame. A live device is reopened after a
    failed read, up to MAX_READ_FAILURES times in a row, then detaches.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._consecutive_failures = 0
        self._ended = False

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    @property
    def has_stream(self) -> bool:
        return self._is_open and not self._ended and self._cap is not None and self._cap.isOpened()

    def open(self) -> None:
        if self._is_open:
            return

        self._cap = self._connect()
        self._is_open = True
        self._ended = False
        self._frame_index = 0
        self._consecutive_failures = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={describe_device(self.device_id)}, resolution={self._opencv_config.resolution}"
        )

    def _connect(self) -> cv2.VideoCapture:
        """Open the device, backing off between attempts."""
        device = describe_device(self.device_id)
        attempts = max(1, self._opencv_config.max_retries)
        for attempt in range(attempts):
            if attempt:
                delay = min(2 ** attempt, 10)
                logging.info(f"Opening {device} again in {delay}s ({attempt + 1}/{attempts})")
                time.sleep(delay)
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._configure(cap)
                return cap
            cap.release()
            logging.warning(f"Could not open {device}")
        raise RuntimeError(f"Could not open {device} after {attempts} attempts")

    def _configure(self, cap: cv2.VideoCapture) -> None:
        """Request resolution, fps and buffer size from a local camera."""
        cfg = self._opencv_config
        if not isinstance(self.device_id, int) or not cfg.resolution:
            return
        w, h = cfg.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)
        logging.info(
            f"Camera delivers {int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))} (requested {w}x{h})"
        )

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def _detach(self, reason: str) -> None:
        logging.info(f"OpenCVSource {self.source_id} detached: {reason}")
        self._ended = True
        self._reset_frame_size()

    def _reconnect_and_read(self) -> Optional[np.ndarray]:
        self._consecutive_failures += 1
        if self._consecutive_failures > MAX_READ_FAILURES:
            self._detach(f"{MAX_READ_FAILURES} reconnects in a row returned no frame")
            return None

        logging.warning(
            f"Read failed on {self.source_id} "
            f"({self._consecutive_failures}/{MAX_READ_FAILURES}), reconnecting"
        )
        self._release()
        try:
            self._cap = self._connect()
        except RuntimeError as e:
            logging.error(f"Reconnect failed: {e}")
            self._detach("device unavailable")
            return None
        ok, frame = self._cap.read()
        return frame if ok else None

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None or self._ended:
            return None

        ok, frame = self._cap.read()
        if not ok or frame is None:
            if self.is_file:
                self._detach("end of file")
                return None
            frame = self._reconnect_and_read()
            if frame is None:
                return None

        self._consecutive_failures = 0
        self._frame_index += 1
        return self._record_frame(FrameData.capture(frame, self._frame_index, source=self.source_id))

    def close(self) -> None:
        self._release()
        self._is_open = False
        self._reset_frame_size()
        logging.info(f"OpenCVSource closed: source_id={self.source_id}")
