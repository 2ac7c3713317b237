"""
Clock -- injectable time source.

Responsibility:
    Lifecycle stamps (issued_date, last_modified_date, transaction_date,
    reviewed_at) all come from a Clock handed to the service, never from
    ``datetime.now()`` inside domain code.

Architecture position:
    Kernel > Domain -- pure functional core.  SystemClock is the one
    sanctioned I/O boundary for time.

Audit relevance:
    Ledger ordering is (transaction_date, seq).  A deterministic clock makes
    that ordering reproducible in tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of "now" for every service that stamps a time."""

    @abstractmethod
    def now(self) -> datetime:
        """The current instant as a timezone-aware UTC datetime."""


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at 2024-01-01 12:00 UTC unless given a start time.  Repeated
    ``now()`` calls return the same instant until ``advance``, ``tick`` or
    ``set_time``.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or self.DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance one second and return the new instant."""
        self.advance(1)
        return self._current


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to a naive datetime read back from storage.

    SQLite drops the offset of DateTime(timezone=True) columns; every value
    the kernel writes is UTC, so a naive value read back is UTC too.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
