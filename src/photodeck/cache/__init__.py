"""Session cache of photos and collections."""

from .entity_store import CollectionStore, EntityStore, PhotoStore, PhotoStoreSignals, StoreSignals

__all__ = [
    "CollectionStore",
    "EntityStore",
    "PhotoStore",
    "PhotoStoreSignals",
    "StoreSignals",
]
