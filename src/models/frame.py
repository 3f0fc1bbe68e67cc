"""
Frames as handed from an observation source to the frame driver.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    One captured frame plus where and when it was read.

    width and height are taken from the pixel array at capture time. A frame
    with either at zero has nothing to detect on; the driver skips it and
    clears the surface instead of running a pass.
    """
    frame: Optional[np.ndarray]
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def capture(
        cls,
        frame: Optional[np.ndarray],
        frame_index: int,
        source: Optional[str] = None,
        timestamp: Optional[float] = None,
    ) -> "FrameData":
        """Wrap a decoded image; missing or shapeless arrays get zero size."""
        if frame is not None and getattr(frame, "ndim", 0) >= 2:
            height, width = frame.shape[:2]
        else:
            height, width = 0, 0
        return cls(
            frame=frame,
            width=int(width),
            height=int(height),
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def is_valid(self) -> bool:
        """True when there are pixels to run detection on."""
        return self.frame is not None and self.width > 0 and self.height > 0
