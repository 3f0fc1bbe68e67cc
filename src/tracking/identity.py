"""
Identity assignment: which tracked entity does each detection belong to.

IndexIdentity keys an entity by the detection's candidate index in the
suppressed set. Two different people can share a key across frames whenever
the set's cardinality or ordering changes, so durations are an approximate
occupancy measure. IouIdentity matches detections to the previous boxes of
known entities instead, and can replace it without touching the rest of
the pipeline.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

import numpy as np

from detection.suppression import iou_one_to_many
from .store import EntityStore


class IdentityAssigner(Protocol):
    def assign(
        self,
        indices: Sequence[int],
        boxes: Optional[np.ndarray],
        store: EntityStore,
    ) -> List[str]:
        ...


class IndexIdentity(IdentityAssigner):
    """Key = prefix + suppressed candidate index."""

    def __init__(self, prefix: str = "person_"):
        self.prefix = prefix

    def assign(
        self,
        indices: Sequence[int],
        boxes: Optional[np.ndarray] = None,
        store: Optional[EntityStore] = None,
    ) -> List[str]:
        return [f"{self.prefix}{int(i)}" for i in indices]


class IouIdentity(IdentityAssigner):
    """
    Greedy IoU matching between the current detections and the last known
    box of each entity.

    Detections are visited in suppression order (highest score first); each
    takes the unmatched entity with the best IoU at or above iou_threshold,
    otherwise a new key is minted.
    """

    def __init__(self, prefix: str = "person_", iou_threshold: float = 0.3):
        self.prefix = prefix
        self.iou_threshold = iou_threshold
        self.next_id = 0

    def _new_key(self, store: EntityStore) -> str:
        key = f"{self.prefix}{self.next_id}"
        self.next_id += 1
        while store.get(key) is not None:
            key = f"{self.prefix}{self.next_id}"
            self.next_id += 1
        return key

    def assign(
        self,
        indices: Sequence[int],
        boxes: Optional[np.ndarray],
        store: EntityStore,
    ) -> List[str]:
        if boxes is None:
            raise ValueError("IouIdentity needs the detection boxes")
        boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
        if boxes.shape[0] != len(indices):
            raise ValueError("boxes and indices disagree on detection count")

        known = [e for e in store if e.last_box is not None]
        known_boxes = np.array([e.last_box for e in known], dtype=np.float64).reshape(-1, 4)
        matched = set()

        keys: List[str] = []
        for box in boxes:
            best_key = None
            if known:
                overlaps = iou_one_to_many(box, known_boxes)
                for j in np.argsort(-overlaps, kind="stable"):
                    if overlaps[j] < self.iou_threshold:
                        break
                    if j not in matched:
                        matched.add(j)
                        best_key = known[j].key
                        break
            keys.append(best_key if best_key is not None else self._new_key(store))
        return keys
