"""Calendar-day interval arithmetic for stays.

All dates are naive calendar days (datetime.date); no timezone or DST math.

Overlap formula:  (a_in < b_out) AND (b_in < a_out)
Strict inequality allows check-out day == check-in day (touching dates are OK).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

ONE_DAY = timedelta(days=1)


class InvalidRangeError(Exception):
    """Raised for an empty or inverted stay, or a window ending before it starts."""

    def __init__(self, start: date, end: date, message: str | None = None):
        self.start = start
        self.end = end
        super().__init__(message or f"Invalid date range: {start} to {end}")


def nights(check_in: date, check_out: date) -> int:
    """Number of nights between two calendar days (may be <= 0)."""
    return (check_out - check_in).days


def overlaps(a_in: date, a_out: date, b_in: date, b_out: date) -> bool:
    """Half-open overlap test for [a_in, a_out) and [b_in, b_out)."""
    return a_in < b_out and b_in < a_out


def each_day(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day in [start, end)."""
    current = start
    while current < end:
        yield current
        current += ONE_DAY


@dataclass(frozen=True)
class DateRange:
    """Half-open stay interval [check_in, check_out).

    Iterating a DateRange yields its nights; it can be iterated any number
    of times.
    """

    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise InvalidRangeError(
                self.check_in,
                self.check_out,
                f"check_in ({self.check_in}) must be before check_out ({self.check_out})",
            )

    @property
    def nights(self) -> int:
        return nights(self.check_in, self.check_out)

    def overlaps(self, check_in: date, check_out: date) -> bool:
        return overlaps(self.check_in, self.check_out, check_in, check_out)

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.check_in <= day < self.check_out

    def __iter__(self) -> Iterator[date]:
        return each_day(self.check_in, self.check_out)

    def __len__(self) -> int:
        return self.nights


def validate_window(start: date, end: date) -> None:
    """Validate an inclusive calendar window [start, end]."""
    if end < start:
        raise InvalidRangeError(
            start, end, f"window end ({end}) must not be before start ({start})"
        )
