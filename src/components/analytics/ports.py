"""
Analytics component port definitions.
"""

from __future__ import annotations

from src.core.ports.cache import LocalCachePort
from src.core.ports.events import EventStorePort
from src.core.ports.time import TimePort

__all__ = [
    "EventStorePort",
    "LocalCachePort",
    "TimePort",
]
