"""Site availability service - availability and pricing queries for sites.

Thin orchestration over the availability index and pricing calculator:
load the site and the bookings/blocks for the window from a SiteStore,
compute, return.

Rules:
- Read-only: no booking or block record is ever written here.
- Verdicts are advisory and point-in-time. They are not reservations; the
  booking-creation workflow must re-check capacity when it writes.
- Every call builds its own index; the service holds no mutable state and is
  safe to call from concurrent threads.
- A caller deadline is checked before every repository read.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Protocol

from pydantic import BaseModel, ConfigDict

from sitestay.domain.availability import (
    AvailabilityIndex,
    AvailabilityVerdict,
    BlockedDates,
    DataInconsistency,
)
from sitestay.domain.date_range import DateRange, validate_window
from sitestay.domain.pricing import PriceBreakdown, calculate_price
from sitestay.domain.sites import AvailabilityBlock, Booking, Site, StayRequest
from sitestay.infra.time import Deadline
from sitestay.observability.correlation import correlation_scope
from sitestay.observability.logging import get_logger

logger = get_logger(__name__)


# ── Exceptions ───────────────────────────────────────────


class SiteNotFoundError(Exception):
    """Raised when a site (or an undesignated group) does not exist."""

    def __init__(self, site_id: str, kind: str = "Site"):
        self.site_id = site_id
        self.kind = kind
        super().__init__(f"{kind} {site_id} not found")


# ── Repository contract ──────────────────────────────────


class SiteStore(Protocol):
    """Read access the service needs from the storage layer.

    Windows are inclusive of both ends. find_active_bookings returns only
    pending/confirmed bookings touching the window.
    """

    def find_site_by_id(
        self, site_id: str, deadline: Deadline | None = None
    ) -> Site | None: ...

    def find_active_bookings(
        self,
        site_id: str,
        window_start: date,
        window_end: date,
        deadline: Deadline | None = None,
    ) -> list[Booking]: ...

    def find_blocked_days(
        self,
        site_id: str,
        window_start: date,
        window_end: date,
        deadline: Deadline | None = None,
    ) -> list[AvailabilityBlock]: ...

    def find_sites_in_group(
        self, group_id: str, deadline: Deadline | None = None
    ) -> list[Site]: ...


InconsistencyHook = Callable[[DataInconsistency], None]


# ── Results ──────────────────────────────────────────────


class SiteAvailability(BaseModel):
    model_config = ConfigDict(frozen=True)

    site: Site
    availability: AvailabilityVerdict | None = None


class GroupAvailability(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_id: str
    is_available: bool
    available_site_ids: list[str] = []
    total_available: int = 0
    reason: str | None = None


REASON_GROUP_FULL = "All sites in this group are booked for these dates"


# ── Service ──────────────────────────────────────────────


class SiteAvailabilityService:
    """Answers availability, blocked-date and pricing queries for sites.

    Args:
        store: Repository used for every read.
        on_inconsistency: Optional hook receiving DataInconsistency records
            (e.g. a telemetry counter). Always logged as well; a failing
            hook is logged and does not fail the query.
    """

    def __init__(
        self,
        store: SiteStore,
        *,
        on_inconsistency: InconsistencyHook | None = None,
    ) -> None:
        self._store = store
        self._on_inconsistency = on_inconsistency

    # -- queries --

    def get_site_availability(
        self,
        site_id: str,
        check_in: date | None = None,
        check_out: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> SiteAvailability:
        """Return the site and, when both dates are given, its verdict for the stay.

        Raises:
            SiteNotFoundError: If the site does not exist.
            InvalidRangeError: If both dates are given and check_in >= check_out.
        """
        with correlation_scope():
            request = None
            if check_in is not None and check_out is not None:
                request = StayRequest(site_id, check_in, check_out)

            site = self._load_site(site_id, deadline)
            availability = None
            if request is not None:
                availability = self._check_site(site, request, deadline)
            return SiteAvailability(site=site, availability=availability)

    def get_blocked_dates(
        self,
        site_id: str,
        start: date,
        end: date,
        *,
        deadline: Deadline | None = None,
    ) -> BlockedDates:
        """Days in the inclusive window [start, end] that cannot take a new stay.

        Raises:
            SiteNotFoundError: If the site does not exist.
            InvalidRangeError: If end < start.
        """
        with correlation_scope():
            validate_window(start, end)
            site = self._load_site(site_id, deadline)
            index = self._build_index(site, start, end, deadline)
            result = index.blocked_dates(start, end)

            logger.info(
                "blocked dates computed",
                extra={
                    "extra_fields": {
                        "site_id": site.id,
                        "capacity_model": index.capacity_model.value,
                        "window_start": start.isoformat(),
                        "window_end": end.isoformat(),
                        "total_blocked": result.total_blocked,
                    }
                },
            )
            return result

    def check_availability(
        self,
        site_id: str,
        check_in: date,
        check_out: date,
        *,
        deadline: Deadline | None = None,
    ) -> AvailabilityVerdict:
        """Decide whether a new stay [check_in, check_out) fits on the site.

        Raises:
            SiteNotFoundError: If the site does not exist.
            InvalidRangeError: If check_in >= check_out.
        """
        with correlation_scope():
            request = StayRequest(site_id, check_in, check_out)
            site = self._load_site(site_id, deadline)
            return self._check_site(site, request, deadline)

    def calculate_pricing(
        self,
        site_id: str,
        check_in: date,
        check_out: date,
        guest_count: int = 1,
        *,
        deadline: Deadline | None = None,
    ) -> PriceBreakdown:
        """Price a stay on the site. Pure over the site's pricing config.

        Raises:
            SiteNotFoundError: If the site does not exist.
            InvalidRangeError: If check_in >= check_out.
            ValueError: If guest_count < 1.
        """
        with correlation_scope():
            request = StayRequest(site_id, check_in, check_out, guest_count)
            site = self._load_site(site_id, deadline)
            return calculate_price(
                site.pricing,
                check_in=request.check_in,
                check_out=request.check_out,
                guest_count=request.guest_count,
                max_guests=site.capacity.max_guests,
            )

    def check_group_availability(
        self,
        group_id: str,
        check_in: date,
        check_out: date,
        *,
        deadline: Deadline | None = None,
    ) -> GroupAvailability:
        """Check every active site of an undesignated group for the stay.

        Each site is evaluated independently; nothing is reconciled across
        sites.

        Raises:
            SiteNotFoundError: If the group has no active sites.
            InvalidRangeError: If check_in >= check_out.
        """
        with correlation_scope():
            stay = DateRange(check_in, check_out)
            if deadline is not None:
                deadline.check("find_sites_in_group")
            sites = self._store.find_sites_in_group(group_id, deadline)
            if not sites:
                raise SiteNotFoundError(group_id, kind="Undesignated group")

            available_ids = [
                site.id
                for site in sites
                if self._check_site(
                    site, StayRequest(site.id, stay.check_in, stay.check_out), deadline
                ).is_available
            ]

            if not available_ids:
                return GroupAvailability(
                    group_id=group_id,
                    is_available=False,
                    reason=REASON_GROUP_FULL,
                )
            return GroupAvailability(
                group_id=group_id,
                is_available=True,
                available_site_ids=available_ids,
                total_available=len(available_ids),
            )

    # -- internals --

    def _load_site(self, site_id: str, deadline: Deadline | None) -> Site:
        if deadline is not None:
            deadline.check("find_site_by_id")
        site = self._store.find_site_by_id(site_id, deadline)
        if site is None:
            raise SiteNotFoundError(site_id)
        return site

    def _build_index(
        self,
        site: Site,
        window_start: date,
        window_end: date,
        deadline: Deadline | None,
    ) -> AvailabilityIndex:
        if deadline is not None:
            deadline.check("find_active_bookings")
        bookings = self._store.find_active_bookings(
            site.id, window_start, window_end, deadline
        )
        if deadline is not None:
            deadline.check("find_blocked_days")
        blocks = self._store.find_blocked_days(site.id, window_start, window_end, deadline)

        index = AvailabilityIndex(site, bookings, blocks)
        if index.inconsistency is not None:
            self._report(index.inconsistency)
        return index

    def _check_site(
        self, site: Site, request: StayRequest, deadline: Deadline | None
    ) -> AvailabilityVerdict:
        # [check_in, check_out) as an inclusive window of nights
        last_night = request.check_out - timedelta(days=1)
        index = self._build_index(site, request.check_in, last_night, deadline)
        verdict = index.check_stay(request.check_in, request.check_out)

        logger.info(
            "availability checked",
            extra={
                "extra_fields": {
                    "site_id": site.id,
                    "capacity_model": verdict.capacity_model.value,
                    "checkin": request.check_in.isoformat(),
                    "checkout": request.check_out.isoformat(),
                    "is_available": verdict.is_available,
                    "spots_left": verdict.spots_left,
                }
            },
        )
        return verdict

    def _report(self, inconsistency: DataInconsistency) -> None:
        logger.warning(
            "availability blocks ignored on undesignated site",
            extra={
                "extra_fields": {
                    "kind": inconsistency.kind,
                    "site_id": inconsistency.site_id,
                    "max_concurrent_bookings": inconsistency.max_concurrent_bookings,
                    "discarded_blocks": inconsistency.discarded_blocks,
                }
            },
        )
        if self._on_inconsistency is None:
            return
        try:
            self._on_inconsistency(inconsistency)
        except Exception:
            logger.exception(
                "inconsistency hook failed",
                extra={"extra_fields": {"site_id": inconsistency.site_id}},
            )
