"""
Blog component port definitions.
"""

from __future__ import annotations

from src.core.ports.store import CollectionStorePort, Record
from src.core.ports.time import TimePort

__all__ = [
    "CollectionStorePort",
    "Record",
    "TimePort",
]
