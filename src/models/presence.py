"""
Presence models: per-entity dwell/absence accounting and per-frame reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class TrackedEntity:
    """
    An entity observed at least once during a detection session.

    Times are milliseconds on the session clock.

    Attributes:
        key: Stable key produced by the identity assigner (e.g. "person_0").
        first_detection_time: Time of first observation.
        last_detection_time: Time of most recent observation.
        total_absence_duration: Accumulated ms the entity was not observed.
        present: True iff observed in the current frame.
        last_absence_update: Time absence was last accounted (incremental mode).
        last_box: Most recent [y1, x1, y2, x2] box, used for IoU identity.
    """
    key: str
    first_detection_time: float
    last_detection_time: float
    total_absence_duration: float = 0.0
    present: bool = True
    last_absence_update: Optional[float] = None
    last_box: Optional[Tuple[float, float, float, float]] = None

    @property
    def dwell_time(self) -> float:
        """Span between first and last sighting, in ms."""
        return self.last_detection_time - self.first_detection_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "first_detection_time": self.first_detection_time,
            "last_detection_time": self.last_detection_time,
            "total_absence_duration": self.total_absence_duration,
            "present": self.present,
            "dwell_time": self.dwell_time,
        }


@dataclass
class PresenceReport:
    """What the reporting interface exposes for one frame."""
    frame_index: int
    timestamp: float
    detection_count: int
    entities: List[Dict[str, Any]] = field(default_factory=list)
    detections: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def present_count(self) -> int:
        return sum(1 for e in self.entities if e.get("present"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_index": self.frame_index,
            "timestamp": self.timestamp,
            "detection_count": self.detection_count,
            "present_count": self.present_count,
            "entities": list(self.entities),
            "detections": list(self.detections),
        }
