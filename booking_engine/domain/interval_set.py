"""Half-open date ranges and the per-room ordered hold set.

Every overlap decision in the engine goes through :meth:`DateRange.overlaps`:
``[a, b)`` and ``[c, d)`` overlap iff ``a < d and c < b``. Touching ranges
such as a check-out and the next guest's check-in on the same day never
conflict.

:class:`IntervalSet` keeps holds sorted by start date in a plain list with a
parallel list of start dates for :mod:`bisect`. Because stored intervals never
overlap, their end dates are sorted too, so the only candidate for a conflict
with ``[start, end)`` is the last interval starting before ``end``. Overlap
queries and exact removals are ``O(log n)``; inserts are ``O(log n)`` search
plus list insertion.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from threading import RLock
from typing import Iterator, Optional

from booking_engine.domain.errors import ConflictError, InvalidRangeError, NotFoundError


class IntervalReason(str, Enum):
    BOOKED = "booked"
    MAINTENANCE = "maintenance"
    BLOCKED = "blocked"
    RENOVATION = "renovation"


@dataclass(frozen=True)
class DateRange:
    """Half-open stay range ``[start, end)`` at day granularity."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidRangeError(
                f"end date {self.end.isoformat()} must be after start date {self.start.isoformat()}"
            )

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def overlaps(self, other: "DateRange") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def days(self) -> Iterator[date]:
        """Yield every night of the stay, check-out day excluded."""
        current = self.start
        while current < self.end:
            yield current
            current += timedelta(days=1)

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


@dataclass(frozen=True)
class DateInterval:
    range: DateRange
    reason: IntervalReason
    booking_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.reason is IntervalReason.BOOKED and not self.booking_id:
            raise ValueError("booked intervals must reference a booking")
        if self.reason is not IntervalReason.BOOKED and self.booking_id:
            raise ValueError("only booked intervals may reference a booking")


class IntervalSet:
    """Ordered, non-overlapping collection of holds for a single room."""

    def __init__(self, intervals: Optional[list[DateInterval]] = None) -> None:
        self._lock = RLock()
        self._intervals: list[DateInterval] = []
        self._starts: list[date] = []
        for interval in intervals or []:
            self.insert(interval.range, interval.reason, interval.booking_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._intervals)

    def __iter__(self) -> Iterator[DateInterval]:
        with self._lock:
            snapshot = list(self._intervals)
        return iter(snapshot)

    def _predecessor_index(self, date_range: DateRange) -> int:
        """Index of the last interval starting before ``date_range.end`` (or -1)."""
        return bisect_left(self._starts, date_range.end) - 1

    def query_overlap(self, date_range: DateRange) -> bool:
        with self._lock:
            index = self._predecessor_index(date_range)
            if index < 0:
                return False
            return self._intervals[index].range.end > date_range.start

    def overlapping(self, date_range: DateRange) -> list[DateInterval]:
        """Return every stored interval intersecting ``date_range``, in start order."""
        with self._lock:
            index = self._predecessor_index(date_range)
            found: list[DateInterval] = []
            while index >= 0 and self._intervals[index].range.end > date_range.start:
                found.append(self._intervals[index])
                index -= 1
            found.reverse()
            return found

    def interval_on(self, day: date) -> Optional[DateInterval]:
        """Return the interval holding the night of ``day``, if any."""
        with self._lock:
            index = bisect_right(self._starts, day) - 1
            if index < 0:
                return None
            candidate = self._intervals[index]
            return candidate if candidate.range.contains(day) else None

    def insert(
        self,
        date_range: DateRange,
        reason: IntervalReason,
        booking_id: Optional[str] = None,
    ) -> DateInterval:
        interval = DateInterval(range=date_range, reason=reason, booking_id=booking_id)
        with self._lock:
            if self.query_overlap(date_range):
                raise ConflictError(f"range {date_range} overlaps an existing hold")
            position = bisect_left(self._starts, date_range.start)
            self._starts.insert(position, date_range.start)
            self._intervals.insert(position, interval)
        return interval

    def remove_exact(self, date_range: DateRange) -> DateInterval:
        """Remove the interval whose range equals ``date_range`` exactly."""
        with self._lock:
            position = bisect_left(self._starts, date_range.start)
            if position < len(self._intervals) and self._intervals[position].range == date_range:
                del self._starts[position]
                return self._intervals.pop(position)
        raise NotFoundError(f"no hold with range {date_range}")

    def find_exact(self, date_range: DateRange) -> Optional[DateInterval]:
        with self._lock:
            position = bisect_left(self._starts, date_range.start)
            if position < len(self._intervals) and self._intervals[position].range == date_range:
                return self._intervals[position]
            return None
