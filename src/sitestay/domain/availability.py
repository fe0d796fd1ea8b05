"""Availability index - blocked dates and stay feasibility for one site.

Pure computation over a point-in-time snapshot of a site's active bookings
and availability blocks. No DB access here; the caller fetches the rows.

Two sources of unavailability are merged:
- availability blocks (host-imposed day blocks, designated sites only)
- active bookings (pending/confirmed), counted against
  capacity.max_concurrent_bookings

Blocks attached to an undesignated site are a data error: they are dropped
and reported through `inconsistency`, never raised.

Results are advisory: nothing here reserves capacity.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from sitestay.domain.capacity import (
    CapacityModel,
    accepts_availability_blocks,
    is_capacity_exhausted,
)
from sitestay.domain.date_range import DateRange, each_day, overlaps, validate_window
from sitestay.domain.sites import AvailabilityBlock, Booking, Site

REASON_BLOCKED = "Site is blocked for some dates in this range"
REASON_FULLY_BOOKED = "Site is fully booked for these dates"


def _all_spots_booked_reason(max_concurrent_bookings: int) -> str:
    return f"All {max_concurrent_bookings} spots are booked for these dates"


# ── Results ───────────────────────────────────────────────


class BlockedDates(BaseModel):
    model_config = ConfigDict(frozen=True)

    blocked_dates: list[date]
    total_blocked: int


class AvailabilityVerdict(BaseModel):
    """Outcome of a single-stay feasibility check.

    Unavailability is a normal outcome, described by `reason` and, for
    block conflicts, the offending `blocked_dates`.
    """

    model_config = ConfigDict(frozen=True)

    is_available: bool
    spots_left: int
    max_concurrent_bookings: int
    capacity_model: CapacityModel
    reason: str | None = None
    blocked_dates: list[date] = []


@dataclass(frozen=True)
class DataInconsistency:
    """Diagnostic: availability blocks found on an undesignated site."""

    site_id: str
    max_concurrent_bookings: int
    discarded_blocks: int
    kind: str = "availability_blocks_on_undesignated_site"


# ── Index ─────────────────────────────────────────────────


class AvailabilityIndex:
    """Per-call view of one site's occupancy.

    Args:
        site: The site whose capacity model drives every rule.
        bookings: Bookings for the site; inactive statuses are ignored.
        blocks: Availability block rows for the site; rows with
            is_available=True are ignored.
    """

    def __init__(
        self,
        site: Site,
        bookings: Iterable[Booking],
        blocks: Iterable[AvailabilityBlock] = (),
    ) -> None:
        self.site = site
        self.capacity_model = site.capacity_model
        self.max_concurrent = site.capacity.max_concurrent_bookings
        self.bookings = [b for b in bookings if b.is_active]

        unavailable = [b for b in blocks if not b.is_available]
        self.inconsistency: DataInconsistency | None = None
        if accepts_availability_blocks(self.capacity_model):
            self.block_days = sorted({b.date for b in unavailable})
        else:
            self.block_days = []
            if unavailable:
                self.inconsistency = DataInconsistency(
                    site_id=site.id,
                    max_concurrent_bookings=self.max_concurrent,
                    discarded_blocks=len(unavailable),
                )

    def occupancy(self, check_in: date, check_out: date) -> int:
        """Count active bookings overlapping [check_in, check_out)."""
        return sum(
            1 for b in self.bookings if overlaps(b.check_in, b.check_out, check_in, check_out)
        )

    def daily_occupancy(self, window_start: date, window_end: date) -> Counter[date]:
        """Map each day in the inclusive window to its active-booking count."""
        counts: Counter[date] = Counter()
        for booking in self.bookings:
            first = max(booking.check_in, window_start)
            for day in each_day(first, booking.check_out):
                if day > window_end:
                    break
                counts[day] += 1
        return counts

    def blocked_dates(self, window_start: date, window_end: date) -> BlockedDates:
        """Days in the inclusive window [window_start, window_end] that cannot take a new stay.

        Raises:
            InvalidRangeError: If window_end < window_start.
        """
        validate_window(window_start, window_end)

        counts = self.daily_occupancy(window_start, window_end)
        blocked = {
            day
            for day, count in counts.items()
            if is_capacity_exhausted(count, self.max_concurrent)
        }
        # block_days is empty for undesignated sites
        blocked.update(d for d in self.block_days if window_start <= d <= window_end)

        ordered = sorted(blocked)
        return BlockedDates(blocked_dates=ordered, total_blocked=len(ordered))

    def check_stay(self, check_in: date, check_out: date) -> AvailabilityVerdict:
        """Decide whether a new stay [check_in, check_out) fits.

        The whole proposed range is one candidate occupant: occupancy is the
        number of active bookings overlapping it anywhere in the range.

        Raises:
            InvalidRangeError: If check_in >= check_out.
        """
        stay = DateRange(check_in, check_out)
        occupancy = self.occupancy(stay.check_in, stay.check_out)

        if is_capacity_exhausted(occupancy, self.max_concurrent):
            if self.capacity_model is CapacityModel.DESIGNATED:
                reason = REASON_FULLY_BOOKED
            else:
                reason = _all_spots_booked_reason(self.max_concurrent)
            return self._unavailable(reason)

        conflicting = [d for d in self.block_days if d in stay]
        if conflicting:
            return self._unavailable(REASON_BLOCKED, blocked_dates=conflicting)

        return AvailabilityVerdict(
            is_available=True,
            spots_left=self.max_concurrent - occupancy,
            max_concurrent_bookings=self.max_concurrent,
            capacity_model=self.capacity_model,
        )

    def _unavailable(
        self, reason: str, blocked_dates: list[date] | None = None
    ) -> AvailabilityVerdict:
        return AvailabilityVerdict(
            is_available=False,
            spots_left=0,
            max_concurrent_bookings=self.max_concurrent,
            capacity_model=self.capacity_model,
            reason=reason,
            blocked_dates=blocked_dates or [],
        )
