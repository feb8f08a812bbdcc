from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo


class SystemClock:
    def __init__(self, tz_name: str = "UTC") -> None:
        self._tz = ZoneInfo(tz_name)

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def now_local(self) -> datetime:
        return self.now_utc().astimezone(self._tz)


class FixedClock:
    """Clock pinned to one instant; advance() moves it forward."""

    def __init__(self, instant: datetime, tz_name: str = "UTC") -> None:
        self._tz = ZoneInfo(tz_name)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self._instant = instant

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    def now_utc(self) -> datetime:
        return self._instant.astimezone(UTC)

    def now_local(self) -> datetime:
        return self._instant.astimezone(self._tz)

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self._instant = instant

    def advance(self, **kwargs: float) -> None:
        self._instant = self._instant + timedelta(**kwargs)
