"""
Persistence component port definitions.
"""

from __future__ import annotations

from src.core.ports.cache import LocalCachePort
from src.core.ports.store import CollectionStorePort, Record

__all__ = [
    "CollectionStorePort",
    "LocalCachePort",
    "Record",
]
