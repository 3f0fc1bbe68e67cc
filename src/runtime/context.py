from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np

from models.presence import PresenceReport
from tracking.presence import PresenceTracker


@dataclass
class DetectionSession:
    """
    Holds the state of one detection session; avoids global singletons.

    The frame driver owns the session and hands its tracker to every frame
    update, so several independent sessions can run side by side.
    """

    tracker: PresenceTracker
    labels: List[str]
    session_id: str = "default"
    web_state: Any = None

    # Observability
    system_stats: dict = field(default_factory=dict)

    # Latest outputs for the reporting interface
    latest_report: Optional[PresenceReport] = None
    latest_frame: Optional[np.ndarray] = None

    def publish(self, report: PresenceReport, frame: Optional[np.ndarray], fps: float) -> None:
        self.latest_report = report
        self.latest_frame = frame
        self.system_stats["fps"] = fps
        self.system_stats["last_frame_ts"] = time.time()
        self.system_stats["detection_count"] = report.detection_count
        if hasattr(self.web_state, "set_frame"):
            self.web_state.set_frame(frame)
        if hasattr(self.web_state, "set_report"):
            self.web_state.set_report(report)
        if hasattr(self.web_state, "update_system_stats"):
            self.web_state.update_system_stats(dict(self.system_stats))

    def clear_frame(self) -> None:
        """Drop the last rendered frame (source detached or frame invalid)."""
        self.latest_frame = None
        if hasattr(self.web_state, "set_frame"):
            self.web_state.set_frame(None)
