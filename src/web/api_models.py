from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class EntityModel(BaseModel):
    key: str
    first_detection_time: float
    last_detection_time: float
    total_absence_duration: float
    present: bool
    dwell_time: float


class DetectionModel(BaseModel):
    index: int = Field(..., description="Position in the frame's suppressed set")
    class_id: int
    class_name: Optional[str] = None
    confidence: float
    box: List[float] = Field(..., description="[x1, y1, x2, y2] in source-frame pixels")


class PresenceResponse(BaseModel):
    frame_index: int = Field(..., description="Index of the frame the snapshot was taken on")
    timestamp: float = Field(..., description="Session clock time (ms) of the frame")
    detection_count: int = Field(..., description="Detections in the frame")
    present_count: int = Field(..., description="Tracked entities present in the frame")
    entities: List[EntityModel] = Field(default_factory=list)
    detections: List[DetectionModel] = Field(default_factory=list)


class StatusResponse(BaseModel):
    """
    Compact status response optimized for frontend polling.
    """
    running: bool = Field(..., description="True if frames are arriving")
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since last frame")
    fps: float = Field(0.0, description="Detection passes per second")
    detection_count: int = Field(0, description="Detections in the latest frame")
    tracked_count: int = Field(0, description="Entities tracked this session")
    uptime_seconds: Optional[int] = Field(None, description="Seconds since the server started")
    warnings: List[str] = Field(default_factory=list, description="Active warnings")
