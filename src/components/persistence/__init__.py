"""
Persistence component - Two-tier storage with local fallback.

A ResilientStore composes a primary (remote) store and a fallback (local
cache) store behind one CRUD contract and reports which tier served
each call.
"""

from ._impl import (
    CachedCollectionStore,
    ResilientStore,
    create_resilient_store,
    matches_filters,
    sort_records,
)
from .models import ServedFrom, StoreResult
from .ports import CollectionStorePort, LocalCachePort, Record

__all__ = [
    # Stores
    "CachedCollectionStore",
    "ResilientStore",
    "create_resilient_store",
    # Query helpers
    "matches_filters",
    "sort_records",
    # Models
    "ServedFrom",
    "StoreResult",
    # Ports
    "CollectionStorePort",
    "LocalCachePort",
    "Record",
]
