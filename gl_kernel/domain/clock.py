"""
Injectable time source for the ledger.

Journal services never read the wall clock themselves.  created_at,
updated_at, posted_at, voided_at and closed_at, and the posting_date a
journal receives when it is posted, all come from the Clock handed to the
service.  Tests pin it with FixedClock.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current instant.  Implementations return UTC-aware datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date used as a journal's posting_date."""
        return self.now().astimezone(timezone.utc).date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    Clock pinned to one instant until moved explicitly.

    Stamps taken between two ``advance()`` calls are identical, which lets
    tests compare posted_at or closed_at by equality.
    """

    def __init__(self, at: datetime | None = None):
        at = at or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        if at.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime")
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, seconds: int = 1) -> datetime:
        self._at += timedelta(seconds=seconds)
        return self._at

    def move_to(self, at: datetime) -> None:
        self._at = at
