"""
Persistence component models.

Every ResilientStore call reports which tier served it, so callers (or a
later sync job) can tell a remote success from a local-only one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ServedFrom(str, Enum):
    """Which persistence tier produced a result."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """A value together with the tier that produced it."""

    value: T
    served_from: ServedFrom

    @property
    def from_fallback(self) -> bool:
        return self.served_from == ServedFrom.FALLBACK
