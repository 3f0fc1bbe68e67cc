from __future__ import annotations

import time
from typing import List, Optional

import cv2
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from ..api_models import PresenceResponse, StatusResponse

router = APIRouter()

STALE_FRAME_S = 2.0
OFFLINE_FRAME_S = 10.0


def _compute_warnings(last_frame_age_s: Optional[float]) -> List[str]:
    """
    Thresholds: no frame or >10s since last frame => source_offline;
    >2s => source_stale.
    """
    warnings: List[str] = []
    if last_frame_age_s is None or last_frame_age_s > OFFLINE_FRAME_S:
        warnings.append("source_offline")
    elif last_frame_age_s > STALE_FRAME_S:
        warnings.append("source_stale")
    return warnings


def _state(request: Request):
    return request.app.state.reporting


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """Driver liveness, throughput and the latest detection count."""
    now = time.time()
    sys_stats = _state(request).get_system_stats_copy()
    report = _state(request).get_report_dict()

    last_frame_ts = sys_stats.get("last_frame_ts")
    last_frame_age = now - last_frame_ts if last_frame_ts else None
    start_time = sys_stats.get("start_time")
    warnings = _compute_warnings(last_frame_age)

    return StatusResponse(
        running="source_offline" not in warnings,
        last_frame_age_s=last_frame_age,
        fps=float(sys_stats.get("fps", 0) or 0),
        detection_count=int(sys_stats.get("detection_count", 0) or 0),
        tracked_count=len(report["entities"]) if report else 0,
        uptime_seconds=int(now - start_time) if start_time else None,
        warnings=warnings,
    )


@router.get("/presence", response_model=PresenceResponse)
def presence(request: Request):
    """Snapshot of every tracked entity with its durations."""
    report = _state(request).get_report_dict()
    if report is None:
        raise HTTPException(status_code=404, detail="No frame processed yet")
    return report


@router.get("/frame.jpg")
def frame_jpeg(request: Request):
    """Latest annotated frame as JPEG."""
    frame = _state(request).get_frame()
    if frame is None:
        raise HTTPException(status_code=404, detail="No frame available")
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode frame")
    return Response(content=buf.tobytes(), media_type="image/jpeg")
