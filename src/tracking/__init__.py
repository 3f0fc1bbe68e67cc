"""
Tracking module.

The canonical presence tracker implementation is in tracking.presence.
"""

from .presence import PresenceTracker, PresenceUpdate, create_presence_tracker
from .identity import IdentityAssigner, IndexIdentity, IouIdentity
from .store import EntityStore, InMemoryEntityStore

__all__ = [
    "PresenceTracker",
    "PresenceUpdate",
    "create_presence_tracker",
    "IdentityAssigner",
    "IndexIdentity",
    "IouIdentity",
    "EntityStore",
    "InMemoryEntityStore",
]
