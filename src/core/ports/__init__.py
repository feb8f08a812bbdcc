# Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.cache import LocalCachePort
from src.core.ports.events import EventStorePort
from src.core.ports.store import CollectionStorePort, Record
from src.core.ports.time import TimePort

__all__ = [
    "CollectionStorePort",
    "EventStorePort",
    "LocalCachePort",
    "Record",
    "TimePort",
]
