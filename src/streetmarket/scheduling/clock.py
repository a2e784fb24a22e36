"""Clocks used by timers, order processing and proximity cooldowns."""

from datetime import UTC, datetime, timedelta


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ManualClock:
    """A clock that only moves when told to. Used to drive timers in tests."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        """Move forward by ``seconds`` plus any ``timedelta`` keyword arguments."""
        self._now += timedelta(seconds=seconds, **kwargs)
        return self._now

    def set(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        self._now = moment
        return self._now


def as_utc(moment: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with clock readings."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
