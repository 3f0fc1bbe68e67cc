"""
Tests for decoding raw YOLO-style output.
"""

import numpy as np
import pytest

from detection.decoder import decode, transpose_output
from inference.backend import FunctionEngine, InferenceAdapter
from models.errors import InferenceError
from pipeline.stages.detect import DetectStage, DetectStageConfig


class TestDecode:
    """Tests for decode()."""

    def test_center_box_to_corners(self, raw_output):
        """(cx, cy, w, h) becomes [y1, x1, y2, x2]."""
        raw = raw_output([(100.0, 50.0, 40.0, 20.0, 0, 0.9)], num_classes=3)

        candidates = decode(raw, num_classes=3)

        assert candidates.boxes.shape == (1, 4)
        assert candidates.boxes[0].tolist() == pytest.approx([40.0, 80.0, 60.0, 120.0])

    def test_score_is_max_and_class_is_argmax(self):
        raw = np.zeros((1, 7, 2), dtype=np.float32)
        raw[0, 4:7, 0] = [0.1, 0.7, 0.3]
        raw[0, 4:7, 1] = [0.5, 0.2, 0.6]

        candidates = decode(raw, num_classes=3)

        assert candidates.scores.tolist() == pytest.approx([0.7, 0.6])
        assert candidates.class_indices.tolist() == [1, 2]

    def test_single_class_model(self, raw_output):
        """A one-class model still yields one score per candidate."""
        raw = raw_output(
            [(10, 10, 4, 4, 0, 0.8), (20, 20, 4, 4, 0, 0.3), (30, 30, 4, 4, 0, 0.5)],
            num_classes=1,
        )

        candidates = decode(raw, num_classes=1)

        assert candidates.scores.shape == (3,)
        assert candidates.scores.tolist() == pytest.approx([0.8, 0.3, 0.5])
        assert candidates.class_indices.tolist() == [0, 0, 0]

    def test_single_candidate_single_class(self, raw_output):
        raw = raw_output([(10, 10, 4, 4, 0, 0.8)], num_classes=1)

        candidates = decode(raw, num_classes=1)

        assert len(candidates) == 1
        assert candidates.scores.tolist() == pytest.approx([0.8])

    def test_no_candidates(self):
        raw = np.zeros((1, 84, 0), dtype=np.float32)

        candidates = decode(raw, num_classes=80)

        assert len(candidates) == 0
        assert candidates.boxes.shape == (0, 4)

    def test_attribute_count_mismatch(self):
        raw = np.zeros((1, 10, 5), dtype=np.float32)

        with pytest.raises(InferenceError):
            decode(raw, num_classes=80)

    def test_batch_larger_than_one_rejected(self):
        raw = np.zeros((2, 7, 5), dtype=np.float32)

        with pytest.raises(InferenceError):
            decode(raw, num_classes=3)

    def test_decode_is_deterministic(self, raw_output):
        raw = raw_output([(50, 60, 10, 20, 2, 0.4), (5, 6, 1, 2, 1, 0.9)], num_classes=3)

        a = decode(raw, num_classes=3)
        b = decode(raw, num_classes=3)

        assert np.array_equal(a.boxes, b.boxes)
        assert np.array_equal(a.scores, b.scores)
        assert np.array_equal(a.class_indices, b.class_indices)



class TestDecodeAndSuppress:
    """Decoder plus suppression on the same raw output."""

    @pytest.fixture
    def stage(self):
        adapter = InferenceAdapter(FunctionEngine(lambda t: t, input_shape=(1, 64, 64, 3)))
        return DetectStage(adapter, ["person", "car", "dog"], DetectStageConfig(iou_threshold=0.5))

    def test_postprocess_is_deterministic(self, stage, raw_output):
        raw = raw_output(
            [
                (20, 20, 10, 10, 0, 0.9),
                (21, 20, 10, 10, 0, 0.85),  # overlaps the first, suppressed
                (50, 50, 8, 8, 1, 0.6),
                (5, 5, 2, 2, 2, 0.1),  # below score threshold
            ],
            num_classes=3,
        )
        before = raw.copy()

        a = stage.postprocess(raw)
        b = stage.postprocess(raw)

        assert a.selected.tolist() == [0, 2]
        assert np.array_equal(a.selected, b.selected)
        assert np.array_equal(a.boxes, b.boxes)
        assert np.array_equal(a.scores, b.scores)
        assert np.array_equal(a.class_indices, b.class_indices)
        assert np.array_equal(raw, before)

class TestTransposeOutput:
    def test_transpose(self):
        raw = np.arange(2 * 3).reshape(1, 2, 3)

        trans = transpose_output(raw)

        assert trans.shape == (1, 3, 2)
        assert trans[0, 2, 1] == raw[0, 1, 2]

    def test_two_dimensional_output_gets_batch_axis(self):
        trans = transpose_output(np.zeros((84, 10)))

        assert trans.shape == (1, 10, 84)

    def test_rejects_bad_rank(self):
        with pytest.raises(InferenceError):
            transpose_output(np.zeros((1, 1, 84, 10)))
