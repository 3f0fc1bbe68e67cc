"""
Per-frame buffer scope.

Every buffer allocated while processing a frame (padded image, resized image,
input tensor, raw/transposed output, box arrays) is registered with the
frame's scope. Leaving the scope drops all references on every exit path, so
nothing allocated for one frame outlives it.

Example:
    with FrameScope(budget_bytes=64 * 1024 * 1024) as scope:
        prep = preprocess(frame, 640, 640, scope=scope)
        raw = adapter.run(prep, scope=scope)
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from models.errors import ResourceExhaustionError


class FrameScope:
    """Tracks buffers for one frame and releases them on exit."""

    def __init__(self, budget_bytes: Optional[int] = None, name: str = "frame"):
        self.budget_bytes = budget_bytes
        self.name = name
        self._buffers: List[np.ndarray] = []
        self._allocated_bytes = 0
        self.peak_bytes = 0
        self.released_count = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def live_buffers(self) -> int:
        """Number of buffers currently held by the scope."""
        return len(self._buffers)

    @property
    def allocated_bytes(self) -> int:
        return self._allocated_bytes

    def track(self, array: np.ndarray) -> np.ndarray:
        """
        Register a buffer with the scope and return it unchanged.

        Raises:
            ResourceExhaustionError: If the scope's byte budget is exceeded.
        """
        if array is None:
            return array
        nbytes = int(getattr(array, "nbytes", 0))
        if self.budget_bytes is not None and self._allocated_bytes + nbytes > self.budget_bytes:
            raise ResourceExhaustionError(
                f"{self.name} scope budget exceeded: "
                f"{self._allocated_bytes + nbytes} > {self.budget_bytes} bytes"
            )
        self._buffers.append(array)
        self._allocated_bytes += nbytes
        self.peak_bytes = max(self.peak_bytes, self._allocated_bytes)
        return array

    def release(self) -> None:
        """Drop every registered buffer. Safe to call multiple times."""
        self.released_count += len(self._buffers)
        self._buffers.clear()
        self._allocated_bytes = 0

    def __enter__(self) -> "FrameScope":
        self._active = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        self._active = False
        if exc_type is not None and issubclass(exc_type, MemoryError):
            logging.error(f"Allocation failed inside {self.name} scope: {exc_val}")
            raise ResourceExhaustionError(f"Allocation failed: {exc_val}") from exc_val
        return False
