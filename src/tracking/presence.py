"""
Presence tracking: first-seen, last-seen and accumulated absence per entity.

Each frame:
1. every tracked entity is marked not present,
2. each surviving detection is mapped to a key and created or refreshed,
3. every entity still not present accrues absence time.

Note: Rendering and reporting are NOT done here. The tracker only updates
its store and returns what changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from models.presence import TrackedEntity
from .identity import IdentityAssigner, IndexIdentity, IouIdentity
from .store import EntityStore, InMemoryEntityStore

ABSENCE_SINCE_LAST_SEEN = "since_last_seen"
ABSENCE_INCREMENTAL = "incremental"
ABSENCE_MODES = (ABSENCE_SINCE_LAST_SEEN, ABSENCE_INCREMENTAL)


@dataclass
class PresenceUpdate:
    """Result of one tracker update."""
    detection_count: int
    keys: List[str] = field(default_factory=list)
    new_keys: List[str] = field(default_factory=list)
    evicted_keys: List[str] = field(default_factory=list)


class PresenceTracker:
    """
    Maintains per-entity presence state across frames.

    The tracker owns no global state: its store and identity assigner are
    created per detection session and travel with the session context.
    """

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        identity: Optional[IdentityAssigner] = None,
        absence_mode: str = ABSENCE_SINCE_LAST_SEEN,
        evict_after_ms: Optional[float] = None,
    ):
        """
        Initialize the presence tracker.

        Args:
            store: Entity store (defaults to an in-memory, append-only store)
            identity: Identity assigner (defaults to index-based keys)
            absence_mode: "since_last_seen" adds (now - last seen) for every
                          frame an entity is missing; "incremental" adds only
                          the time since absence was last accounted
            evict_after_ms: Drop entities absent for longer than this; None
                            keeps every entity for the session lifetime
        """
        if absence_mode not in ABSENCE_MODES:
            raise ValueError(f"absence_mode must be one of {ABSENCE_MODES}, got {absence_mode!r}")
        self.store: EntityStore = store if store is not None else InMemoryEntityStore()
        self.identity: IdentityAssigner = identity if identity is not None else IndexIdentity()
        self.absence_mode = absence_mode
        self.evict_after_ms = evict_after_ms

    def update(
        self,
        indices: Sequence[int],
        now: float,
        boxes: Optional[np.ndarray] = None,
    ) -> PresenceUpdate:
        """
        Update presence with the current frame's suppressed detections.

        Args:
            indices: Suppressed candidate indices, in selection order
            now: Current time in ms
            boxes: Optional [N, 4] boxes matching indices (needed for IoU identity)

        Returns:
            PresenceUpdate with the frame's detection count and affected keys
        """
        indices = [int(i) for i in indices]
        if boxes is not None:
            boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)

        # Step 1: reset presence
        for entity in self.store:
            entity.present = False

        # Step 2: create or refresh one entity per detection
        keys = self.identity.assign(indices, boxes, self.store)
        new_keys: List[str] = []
        for i, key in enumerate(keys):
            box = tuple(float(v) for v in boxes[i]) if boxes is not None else None
            entity = self.store.get(key)
            if entity is None:
                entity = TrackedEntity(
                    key=key,
                    first_detection_time=now,
                    last_detection_time=now,
                    total_absence_duration=0.0,
                    present=True,
                    last_box=box,
                )
                new_keys.append(key)
            else:
                entity.last_detection_time = max(entity.last_detection_time, now)
                entity.present = True
                entity.last_absence_update = None
                if box is not None:
                    entity.last_box = box
            self.store.upsert(entity)

        # Step 3: accrue absence for everything not seen this frame
        for entity in self.store:
            if not entity.present:
                self._accrue_absence(entity, now)

        evicted: List[str] = []
        if self.evict_after_ms is not None:
            evicted = self.store.sweep(now, self.evict_after_ms)

        if new_keys:
            logging.debug(f"New entities: {new_keys}")

        return PresenceUpdate(
            detection_count=len(indices),
            keys=list(keys),
            new_keys=new_keys,
            evicted_keys=evicted,
        )

    def _accrue_absence(self, entity: TrackedEntity, now: float) -> None:
        if self.absence_mode == ABSENCE_INCREMENTAL:
            since = entity.last_detection_time
            if entity.last_absence_update is not None:
                since = max(since, entity.last_absence_update)
            entity.last_absence_update = now
        else:
            since = entity.last_detection_time
        entity.total_absence_duration += max(0.0, now - since)

    def get(self, key: str) -> Optional[TrackedEntity]:
        return self.store.get(key)

    def get_present(self) -> List[TrackedEntity]:
        """Get entities observed in the most recent frame."""
        return [e for e in self.store if e.present]

    def get_all(self) -> List[TrackedEntity]:
        """Get all tracked entities (present and absent)."""
        return list(self.store)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Copy of every entity as a plain dict, for reporting."""
        return [e.to_dict() for e in self.store]

    def __len__(self) -> int:
        return len(self.store)


def create_presence_tracker(presence_cfg) -> PresenceTracker:
    """
    Factory function to create a PresenceTracker from a PresenceConfig.
    """
    if presence_cfg.identity == "index":
        identity: IdentityAssigner = IndexIdentity(prefix=presence_cfg.key_prefix)
    elif presence_cfg.identity == "iou":
        identity = IouIdentity(
            prefix=presence_cfg.key_prefix,
            iou_threshold=presence_cfg.iou_match_threshold,
        )
    else:
        raise ValueError(f"Unknown identity assigner: {presence_cfg.identity!r}")

    return PresenceTracker(
        store=InMemoryEntityStore(),
        identity=identity,
        absence_mode=presence_cfg.absence_mode,
        evict_after_ms=presence_cfg.evict_after_ms,
    )
