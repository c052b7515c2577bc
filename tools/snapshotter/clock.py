"""Time source and calendar-month arithmetic.

Every date-window decision takes ``now`` explicitly so that a run can be
pinned to any month.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    """Shift a (year, month) pair by ``delta`` months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


@dataclass(frozen=True)
class MonthWindow:
    """Half-open UTC interval ``[start, end)`` covering one calendar month."""
    year: int
    month: int

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime:
        year, month = add_months(self.year, self.month, 1)
        return datetime(year, month, 1, tzinfo=timezone.utc)

    @property
    def start_ms(self) -> int:
        return _ms(self.start)

    @property
    def end_ms(self) -> int:
        return _ms(self.end)

    @property
    def key(self) -> str:
        """``YYYY-MM`` – the snapshot date and file stem."""
        return f"{self.year:04d}-{self.month:02d}"

    def contains_ms(self, ts: int) -> bool:
        return self.start_ms <= ts < self.end_ms

    def shift(self, delta: int) -> MonthWindow:
        return MonthWindow(*add_months(self.year, self.month, delta))

    @classmethod
    def containing(cls, now: datetime) -> MonthWindow:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
        return cls(now.year, now.month)


def trailing_months(now: datetime, count: int) -> list[MonthWindow]:
    """The ``count`` months before the month containing ``now``, most recent first."""
    current = MonthWindow.containing(now)
    return [current.shift(-offset) for offset in range(1, count + 1)]
