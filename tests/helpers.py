"""Shared test helper functions for sitestay tests.

This module contains helper functions that can be imported by both conftest.py
and individual test files. These are NOT fixtures - they are regular functions.
"""

from __future__ import annotations

from datetime import date
from itertools import count

from sitestay.domain.sites import (
    AvailabilityBlock,
    Booking,
    Capacity,
    Pricing,
    Site,
)
from sitestay.infra.time import Deadline

_booking_ids = count(1)


def make_site(
    site_id: str = "site-1",
    *,
    max_concurrent_bookings: int = 1,
    max_guests: int = 4,
    group_id: str | None = None,
    is_active: bool = True,
    **pricing,
) -> Site:
    """Build a site; pricing kwargs override a 500000 base price."""
    pricing.setdefault("base_price", 500000)
    return Site(
        id=site_id,
        name=f"Site {site_id}",
        group_id=group_id,
        is_active=is_active,
        capacity=Capacity(
            max_guests=max_guests,
            max_concurrent_bookings=max_concurrent_bookings,
        ),
        pricing=Pricing(**pricing),
    )


def make_booking(
    check_in: date,
    check_out: date,
    *,
    site_id: str = "site-1",
    status: str = "confirmed",
) -> Booking:
    return Booking(
        id=f"booking-{next(_booking_ids)}",
        site_id=site_id,
        check_in=check_in,
        check_out=check_out,
        status=status,
    )


def make_block(day: date, *, site_id: str = "site-1") -> AvailabilityBlock:
    return AvailabilityBlock(site_id=site_id, date=day, block_type="blocked")


class InMemorySiteStore:
    """SiteStore over plain lists, with the same filtering as PostgresSiteStore.

    Records every call in `calls` so tests can assert on reads.
    """

    def __init__(
        self,
        sites: list[Site] | None = None,
        bookings: list[Booking] | None = None,
        blocks: list[AvailabilityBlock] | None = None,
    ) -> None:
        self.sites = {s.id: s for s in sites or []}
        self.bookings = list(bookings or [])
        self.blocks = list(blocks or [])
        self.calls: list[tuple] = []

    def find_site_by_id(self, site_id: str, deadline: Deadline | None = None) -> Site | None:
        self.calls.append(("find_site_by_id", site_id))
        return self.sites.get(site_id)

    def find_active_bookings(
        self,
        site_id: str,
        window_start: date,
        window_end: date,
        deadline: Deadline | None = None,
    ) -> list[Booking]:
        self.calls.append(("find_active_bookings", site_id, window_start, window_end))
        return [
            b
            for b in self.bookings
            if b.site_id == site_id
            and b.is_active
            and b.check_in <= window_end
            and b.check_out > window_start
        ]

    def find_blocked_days(
        self,
        site_id: str,
        window_start: date,
        window_end: date,
        deadline: Deadline | None = None,
    ) -> list[AvailabilityBlock]:
        self.calls.append(("find_blocked_days", site_id, window_start, window_end))
        return [
            b
            for b in self.blocks
            if b.site_id == site_id
            and not b.is_available
            and window_start <= b.date <= window_end
        ]

    def find_sites_in_group(
        self, group_id: str, deadline: Deadline | None = None
    ) -> list[Site]:
        self.calls.append(("find_sites_in_group", group_id))
        return sorted(
            (s for s in self.sites.values() if s.group_id == group_id and s.is_active),
            key=lambda s: s.id,
        )
