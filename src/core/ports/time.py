"""
Time Port.

All stored timestamps are UTC. Range resolution works in the configured
display timezone so that "local midnight" and "end of day" follow the
operator's calendar.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Protocol


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...

    def now_local(self) -> datetime:
        """Get current time in the display timezone (timezone-aware)."""
        ...

    @property
    def timezone(self) -> tzinfo:
        """Display timezone."""
        ...
