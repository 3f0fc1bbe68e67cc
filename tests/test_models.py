"""
Tests for the typed data models.
"""

import numpy as np
import pytest

from models.detection import BoundingBox, FrameDetections
from models.frame import FrameData
from models.presence import PresenceReport, TrackedEntity


class TestBoundingBox:
    def test_from_yxyx(self):
        box = BoundingBox.from_yxyx([10.0, 20.0, 30.0, 60.0])

        assert box.as_tuple() == (20.0, 10.0, 60.0, 30.0)


class TestFrameDetections:
    def test_to_detections(self):
        detections = FrameDetections(
            selected=np.array([7, 2]),
            boxes=np.array([[0.0, 0.0, 10.0, 10.0], [5.0, 5.0, 15.0, 25.0]]),
            scores=np.array([0.9, 0.4]),
            class_indices=np.array([0, 5]),
            labels=["person", "car"],
        )

        out = detections.to_detections()

        assert len(detections) == 2
        assert out[0].class_name == "person"
        assert out[0].confidence == pytest.approx(0.9)
        assert out[1].class_name is None
        assert out[1].index == 1
        assert out[1].bbox.as_tuple() == (5.0, 5.0, 25.0, 15.0)

    def test_source_boxes_take_precedence(self):
        detections = FrameDetections(
            selected=np.array([0]),
            boxes=np.array([[1.0, 2.0, 3.0, 4.0]]),
            scores=np.array([0.5]),
            class_indices=np.array([0]),
            labels=["person"],
            source_boxes=np.array([[10.0, 20.0, 30.0, 40.0]]),
        )

        out = detections.to_detections()[0].to_dict()

        assert out == {
            "index": 0,
            "class_id": 0,
            "class_name": "person",
            "confidence": 0.5,
            "box": [20.0, 10.0, 40.0, 30.0],
        }


class TestFrameData:
    def test_capture(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)

        data = FrameData.capture(frame, 4, source="cam", timestamp=1.0)

        assert data.size == (640, 480)
        assert data.frame_index == 4
        assert data.source == "cam"
        assert data.timestamp == 1.0
        assert data.is_valid is True

    @pytest.mark.parametrize(
        "frame",
        [None, np.zeros((0, 640, 3), dtype=np.uint8), np.zeros((480, 0), dtype=np.uint8), np.zeros(5)],
    )
    def test_zero_dimension_frames_are_invalid(self, frame):
        data = FrameData.capture(frame, 1)

        assert data.is_valid is False
        assert 0 in data.size


class TestPresenceModels:
    def test_dwell_time(self):
        entity = TrackedEntity(key="person_0", first_detection_time=100.0, last_detection_time=350.0)

        assert entity.dwell_time == 250.0
        assert entity.to_dict()["dwell_time"] == 250.0

    def test_report_present_count(self):
        report = PresenceReport(
            frame_index=1,
            timestamp=0.0,
            detection_count=1,
            entities=[{"key": "a", "present": True}, {"key": "b", "present": False}],
        )

        assert report.present_count == 1
        assert report.to_dict()["present_count"] == 1
        assert report.to_dict()["detections"] == []
