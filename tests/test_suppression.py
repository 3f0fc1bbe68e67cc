"""
Tests for IoU and greedy non-max suppression.
"""

import numpy as np
import pytest

from detection.suppression import iou, iou_one_to_many, non_max_suppression


class TestIoU:
    """Tests for the IoU helpers."""

    def test_identical_boxes(self):
        assert iou([0, 0, 10, 10], [0, 0, 10, 10]) == pytest.approx(1.0)

    def test_disjoint_boxes(self):
        assert iou([0, 0, 10, 10], [20, 20, 30, 30]) == 0.0

    def test_half_overlap(self):
        # Intersection 50, union 150
        assert iou([0, 0, 10, 10], [0, 5, 10, 15]) == pytest.approx(1 / 3)

    def test_zero_area_box(self):
        assert iou([5, 5, 5, 5], [0, 0, 10, 10]) == 0.0

    def test_corner_order_does_not_matter(self):
        assert iou([10, 10, 0, 0], [0, 0, 10, 10]) == pytest.approx(1.0)

    def test_one_to_many(self):
        overlaps = iou_one_to_many(
            np.array([0, 0, 10, 10]),
            np.array([[0, 0, 10, 10], [50, 50, 60, 60]]),
        )

        assert overlaps.tolist() == pytest.approx([1.0, 0.0])


class TestNonMaxSuppression:
    """Tests for non_max_suppression()."""

    def test_overlapping_lower_score_discarded(self):
        boxes = np.array([[0, 0, 10, 10], [0, 1, 10, 11], [50, 50, 60, 60]], dtype=np.float32)
        scores = np.array([0.9, 0.8, 0.7], dtype=np.float32)

        selected = non_max_suppression(boxes, scores)

        assert selected.tolist() == [0, 2]

    def test_selection_order_is_score_descending(self):
        boxes = np.array([[0, 0, 10, 10], [20, 20, 30, 30], [40, 40, 50, 50]], dtype=np.float32)
        scores = np.array([0.3, 0.9, 0.6], dtype=np.float32)

        selected = non_max_suppression(boxes, scores)

        assert selected.tolist() == [1, 2, 0]

    def test_score_threshold(self):
        boxes = np.array([[0, 0, 10, 10], [20, 20, 30, 30]], dtype=np.float32)
        scores = np.array([0.19, 0.5], dtype=np.float32)

        selected = non_max_suppression(boxes, scores, score_threshold=0.2)

        assert selected.tolist() == [1]

    def test_all_below_threshold(self):
        boxes = np.array([[0, 0, 10, 10]], dtype=np.float32)
        scores = np.array([0.1], dtype=np.float32)

        selected = non_max_suppression(boxes, scores)

        assert selected.size == 0
        assert selected.dtype == np.int64

    def test_max_output_size(self):
        boxes = np.array([[i * 20, 0, i * 20 + 10, 10] for i in range(10)], dtype=np.float32)
        scores = np.linspace(0.9, 0.5, 10).astype(np.float32)

        selected = non_max_suppression(boxes, scores, max_output_size=3)

        assert selected.tolist() == [0, 1, 2]

    def test_max_output_size_zero(self):
        boxes = np.array([[0, 0, 10, 10]], dtype=np.float32)
        scores = np.array([0.9], dtype=np.float32)

        assert non_max_suppression(boxes, scores, max_output_size=0).size == 0

    def test_iou_exactly_at_threshold_kept(self):
        """Only overlaps strictly above the threshold suppress."""
        boxes = np.array([[0, 0, 10, 10], [0, 0, 10, 5]], dtype=np.float32)
        scores = np.array([0.9, 0.8], dtype=np.float32)

        selected = non_max_suppression(boxes, scores, iou_threshold=0.5)

        assert selected.tolist() == [0, 1]

    def test_iou_threshold_controls_overlap(self):
        boxes = np.array([[0, 0, 10, 10], [0, 5, 10, 15]], dtype=np.float32)
        scores = np.array([0.9, 0.8], dtype=np.float32)

        kept = non_max_suppression(boxes, scores, iou_threshold=0.5)
        dropped = non_max_suppression(boxes, scores, iou_threshold=0.3)

        assert kept.tolist() == [0, 1]
        assert dropped.tolist() == [0]

    def test_empty_input(self):
        selected = non_max_suppression(np.zeros((0, 4)), np.zeros((0,)))

        assert selected.size == 0

    def test_selected_pairs_do_not_overlap_above_threshold(self):
        rng = np.random.default_rng(7)
        y1 = rng.uniform(0, 100, 50)
        x1 = rng.uniform(0, 100, 50)
        boxes = np.stack([y1, x1, y1 + rng.uniform(5, 40, 50), x1 + rng.uniform(5, 40, 50)], axis=1)
        scores = rng.uniform(0, 1, 50)

        selected = non_max_suppression(boxes, scores, iou_threshold=0.45, score_threshold=0.2)

        assert len(set(selected.tolist())) == len(selected)
        for i, a in enumerate(selected):
            assert scores[a] >= 0.2
            for b in selected[i + 1:]:
                assert iou(boxes[a], boxes[b]) <= 0.45

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError):
            non_max_suppression(np.zeros((3, 4)), np.zeros((2,)))

    def test_invalid_iou_threshold(self):
        with pytest.raises(ValueError):
            non_max_suppression(np.zeros((1, 4)), np.zeros((1,)), iou_threshold=1.5)
