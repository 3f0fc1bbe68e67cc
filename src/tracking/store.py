"""
Tracked-entity storage.

The tracker only talks to the store through get/upsert/sweep, so an eviction
policy can be added without touching call sites. The in-memory store keeps
every entity for the lifetime of the session unless sweep() is called.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Protocol

from models.presence import TrackedEntity


class EntityStore(Protocol):
    def get(self, key: str) -> Optional[TrackedEntity]:
        ...

    def upsert(self, entity: TrackedEntity) -> None:
        ...

    def sweep(self, now: float, max_absence_ms: float) -> List[str]:
        ...

    def __iter__(self) -> Iterator[TrackedEntity]:
        ...

    def __len__(self) -> int:
        ...


class InMemoryEntityStore(EntityStore):
    """Insertion-ordered dict of entities keyed by entity key."""

    def __init__(self):
        self._entities: Dict[str, TrackedEntity] = {}

    def get(self, key: str) -> Optional[TrackedEntity]:
        return self._entities.get(key)

    def upsert(self, entity: TrackedEntity) -> None:
        self._entities[entity.key] = entity

    def sweep(self, now: float, max_absence_ms: float) -> List[str]:
        """
        Remove entities that are not present and were last seen more than
        max_absence_ms before now.

        Returns:
            Keys of the removed entities.
        """
        to_remove = [
            key
            for key, entity in self._entities.items()
            if not entity.present and now - entity.last_detection_time > max_absence_ms
        ]
        for key in to_remove:
            del self._entities[key]
        if to_remove:
            logging.debug(f"Evicted {len(to_remove)} absent entities: {to_remove}")
        return to_remove

    def __iter__(self) -> Iterator[TrackedEntity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, key: str) -> bool:
        return key in self._entities
