"""Tests for SiteAvailabilityService over an in-memory SiteStore."""

from datetime import date, timedelta
from unittest.mock import MagicMock, patch

import pytest

from helpers import InMemorySiteStore, make_block, make_booking, make_site
from sitestay.domain.availability import DataInconsistency
from sitestay.domain.date_range import InvalidRangeError
from sitestay.infra.time import Deadline, DeadlineExceeded, utc_now
from sitestay.services.site_availability import (
    REASON_GROUP_FULL,
    SiteAvailabilityService,
    SiteNotFoundError,
)


def d(day: int) -> date:
    return date(2024, 6, day)


class TestGetSiteAvailability:
    def test_without_dates_returns_site_only(self, store):
        store.sites["site-1"] = make_site()
        service = SiteAvailabilityService(store)

        result = service.get_site_availability("site-1")

        assert result.site.id == "site-1"
        assert result.availability is None
        assert [c[0] for c in store.calls] == ["find_site_by_id"]

    def test_with_one_date_returns_site_only(self, store):
        store.sites["site-1"] = make_site()

        result = SiteAvailabilityService(store).get_site_availability("site-1", d(1))

        assert result.availability is None

    def test_with_both_dates_includes_verdict(self, store):
        store.sites["site-1"] = make_site()
        store.bookings.append(make_booking(d(2), d(4)))

        result = SiteAvailabilityService(store).get_site_availability("site-1", d(1), d(5))

        assert result.availability is not None
        assert not result.availability.is_available

    def test_missing_site(self, store):
        with pytest.raises(SiteNotFoundError) as exc_info:
            SiteAvailabilityService(store).get_site_availability("nope")
        assert exc_info.value.site_id == "nope"


class TestCheckAvailability:
    def test_designated_exclusivity(self, store):
        store.sites["site-1"] = make_site()
        store.bookings.append(make_booking(d(3), d(4)))

        verdict = SiteAvailabilityService(store).check_availability("site-1", d(1), d(5))

        assert not verdict.is_available
        assert verdict.spots_left == 0

    def test_undesignated_threshold(self, store):
        store.sites["field"] = make_site("field", max_concurrent_bookings=3)
        store.bookings.extend(
            [make_booking(d(1), d(5), site_id="field"), make_booking(d(2), d(3), site_id="field")]
        )
        service = SiteAvailabilityService(store)

        verdict = service.check_availability("field", d(1), d(5))
        assert verdict.is_available
        assert verdict.spots_left == 1

        store.bookings.append(make_booking(d(4), d(9), site_id="field"))
        verdict = service.check_availability("field", d(1), d(5))
        assert not verdict.is_available
        assert verdict.spots_left == 0

    def test_two_spot_scenario_reason(self, store):
        store.sites["field"] = make_site("field", max_concurrent_bookings=2)
        store.bookings.extend(
            [
                make_booking(d(1), d(5), site_id="field"),
                make_booking(date(2024, 5, 30), d(7), site_id="field"),
            ]
        )

        verdict = SiteAvailabilityService(store).check_availability("field", d(1), d(5))

        assert not verdict.is_available
        assert "2 spots" in verdict.reason

    def test_back_to_back_turnover(self, store):
        store.sites["site-1"] = make_site()
        store.bookings.append(make_booking(d(1), d(5)))

        verdict = SiteAvailabilityService(store).check_availability("site-1", d(5), d(7))

        assert verdict.is_available

    def test_reads_nights_window(self, store):
        """Bookings/blocks are read for [check_in, check_out - 1] inclusive."""
        store.sites["site-1"] = make_site()

        SiteAvailabilityService(store).check_availability("site-1", d(1), d(5))

        assert ("find_active_bookings", "site-1", d(1), d(4)) in store.calls
        assert ("find_blocked_days", "site-1", d(1), d(4)) in store.calls

    def test_blocked_dates_listed(self, store):
        store.sites["site-1"] = make_site()
        store.blocks.extend([make_block(d(2)), make_block(d(3))])

        verdict = SiteAvailabilityService(store).check_availability("site-1", d(1), d(5))

        assert not verdict.is_available
        assert verdict.blocked_dates == [d(2), d(3)]

    def test_invalid_range_fails_before_reads(self, store):
        store.sites["site-1"] = make_site()

        with pytest.raises(InvalidRangeError):
            SiteAvailabilityService(store).check_availability("site-1", d(5), d(5))
        assert store.calls == []

    def test_missing_site(self, store):
        with pytest.raises(SiteNotFoundError):
            SiteAvailabilityService(store).check_availability("nope", d(1), d(2))


class TestGetBlockedDates:
    def test_designated_calendar(self, store):
        store.sites["site-1"] = make_site()
        store.bookings.append(make_booking(d(3), d(5)))
        store.blocks.append(make_block(d(10)))

        result = SiteAvailabilityService(store).get_blocked_dates("site-1", d(1), d(30))

        assert result.blocked_dates == [d(3), d(4), d(10)]
        assert result.total_blocked == 3

    def test_undesignated_ignores_blocks_and_reports(self, store):
        seen: list[DataInconsistency] = []
        store.sites["field"] = make_site("field", max_concurrent_bookings=2)
        store.blocks.extend([make_block(d(2), site_id="field"), make_block(d(3), site_id="field")])

        service = SiteAvailabilityService(store, on_inconsistency=seen.append)
        result = service.get_blocked_dates("field", d(1), d(30))

        assert result.blocked_dates == []
        assert seen == [
            DataInconsistency(site_id="field", max_concurrent_bookings=2, discarded_blocks=2)
        ]

    def test_failing_hook_does_not_fail_query(self, store):
        hook = MagicMock(side_effect=RuntimeError("telemetry down"))
        store.sites["field"] = make_site("field", max_concurrent_bookings=2)
        store.blocks.append(make_block(d(2), site_id="field"))

        result = SiteAvailabilityService(store, on_inconsistency=hook).get_blocked_dates(
            "field", d(1), d(30)
        )

        hook.assert_called_once()
        assert result.total_blocked == 0

    def test_no_hook_call_without_inconsistency(self, store):
        hook = MagicMock()
        store.sites["site-1"] = make_site()
        store.blocks.append(make_block(d(2)))

        SiteAvailabilityService(store, on_inconsistency=hook).get_blocked_dates(
            "site-1", d(1), d(30)
        )

        hook.assert_not_called()

    def test_window_end_before_start(self, store):
        store.sites["site-1"] = make_site()

        with pytest.raises(InvalidRangeError):
            SiteAvailabilityService(store).get_blocked_dates("site-1", d(10), d(1))

    def test_missing_site(self, store):
        with pytest.raises(SiteNotFoundError):
            SiteAvailabilityService(store).get_blocked_dates("nope", d(1), d(2))


class TestCalculatePricing:
    def test_uses_site_pricing_and_capacity(self, store):
        store.sites["site-1"] = make_site(
            base_price=400000, weekly_discount_pct=10, additional_guest_fee=1000, max_guests=2
        )

        result = SiteAvailabilityService(store).calculate_pricing(
            "site-1", date(2024, 6, 3), date(2024, 6, 13), guest_count=3
        )

        assert result.subtotal == 4000000
        assert result.discount == 400000
        assert result.fees.extra_guest == 1000
        assert result.total == 3601000

    def test_default_guest_count_is_one(self, store):
        store.sites["site-1"] = make_site(max_guests=1, additional_guest_fee=1000)

        result = SiteAvailabilityService(store).calculate_pricing("site-1", d(3), d(4))

        assert result.fees.extra_guest == 0

    def test_does_not_read_occupancy(self, store):
        store.sites["site-1"] = make_site()

        SiteAvailabilityService(store).calculate_pricing("site-1", d(3), d(4))

        assert [c[0] for c in store.calls] == ["find_site_by_id"]

    def test_idempotent(self, store):
        store.sites["site-1"] = make_site(weekend_price=600000, cleaning_fee=10)
        service = SiteAvailabilityService(store)

        assert service.calculate_pricing("site-1", d(1), d(9), 2) == service.calculate_pricing(
            "site-1", d(1), d(9), 2
        )

    def test_rejects_zero_guests(self, store):
        store.sites["site-1"] = make_site()

        with pytest.raises(ValueError):
            SiteAvailabilityService(store).calculate_pricing("site-1", d(1), d(2), 0)

    def test_missing_site(self, store):
        with pytest.raises(SiteNotFoundError):
            SiteAvailabilityService(store).calculate_pricing("nope", d(1), d(2))


class TestCheckGroupAvailability:
    def _group_store(self) -> InMemorySiteStore:
        return InMemorySiteStore(
            sites=[
                make_site("a", group_id="meadow"),
                make_site("b", group_id="meadow"),
                make_site("c", group_id="meadow", is_active=False),
                make_site("x", group_id="other"),
            ]
        )

    def test_lists_available_sites(self):
        store = self._group_store()
        store.bookings.append(make_booking(d(1), d(3), site_id="a"))

        result = SiteAvailabilityService(store).check_group_availability("meadow", d(1), d(5))

        assert result.is_available
        assert result.available_site_ids == ["b"]
        assert result.total_available == 1

    def test_all_booked(self):
        store = self._group_store()
        store.bookings.extend(
            [make_booking(d(1), d(3), site_id="a"), make_booking(d(4), d(6), site_id="b")]
        )

        result = SiteAvailabilityService(store).check_group_availability("meadow", d(1), d(5))

        assert not result.is_available
        assert result.available_site_ids == []
        assert result.reason == REASON_GROUP_FULL

    def test_checks_each_site_under_its_own_id(self):
        store = self._group_store()

        SiteAvailabilityService(store).check_group_availability("meadow", d(1), d(5))

        assert ("find_active_bookings", "a", d(1), d(4)) in store.calls
        assert ("find_active_bookings", "b", d(1), d(4)) in store.calls
        assert not any(c[0] == "find_active_bookings" and c[1] == "meadow" for c in store.calls)

    def test_invalid_range_fails_before_group_lookup(self):
        store = self._group_store()

        with pytest.raises(InvalidRangeError):
            SiteAvailabilityService(store).check_group_availability("meadow", d(5), d(1))
        assert store.calls == []

    def test_unknown_group(self):
        with pytest.raises(SiteNotFoundError):
            SiteAvailabilityService(self._group_store()).check_group_availability(
                "nowhere", d(1), d(5)
            )


class TestDeadline:
    def test_expired_deadline_stops_before_first_read(self, store):
        store.sites["site-1"] = make_site()
        expired = Deadline(expires_at=utc_now() - timedelta(seconds=1))

        with pytest.raises(DeadlineExceeded) as exc_info:
            SiteAvailabilityService(store).check_availability(
                "site-1", d(1), d(5), deadline=expired
            )

        assert exc_info.value.operation == "find_site_by_id"
        assert store.calls == []

    def test_generous_deadline_is_passed_through(self, store):
        store.sites["site-1"] = make_site()

        verdict = SiteAvailabilityService(store).check_availability(
            "site-1", d(1), d(5), deadline=Deadline.after(30)
        )

        assert verdict.is_available


class TestLogging:
    def test_inconsistency_is_logged_as_warning(self, store):
        store.sites["field"] = make_site("field", max_concurrent_bookings=2)
        store.blocks.append(make_block(d(2), site_id="field"))

        with patch("sitestay.services.site_availability.logger") as mock_logger:
            SiteAvailabilityService(store).check_availability("field", d(1), d(5))

        mock_logger.warning.assert_called_once()
        fields = mock_logger.warning.call_args.kwargs["extra"]["extra_fields"]
        assert fields["site_id"] == "field"
        assert fields["discarded_blocks"] == 1
        assert fields["kind"] == "availability_blocks_on_undesignated_site"

    def test_verdict_logged_without_guest_data(self, store):
        store.sites["site-1"] = make_site()

        with patch("sitestay.services.site_availability.logger") as mock_logger:
            SiteAvailabilityService(store).check_availability("site-1", d(1), d(5))

        fields = mock_logger.info.call_args.kwargs["extra"]["extra_fields"]
        assert fields == {
            "site_id": "site-1",
            "capacity_model": "designated",
            "checkin": "2024-06-01",
            "checkout": "2024-06-05",
            "is_available": True,
            "spots_left": 1,
        }

    def test_hook_failure_logged(self, store):
        store.sites["field"] = make_site("field", max_concurrent_bookings=2)
        store.blocks.append(make_block(d(2), site_id="field"))
        hook = MagicMock(side_effect=RuntimeError("down"))

        with patch("sitestay.services.site_availability.logger") as mock_logger:
            SiteAvailabilityService(store, on_inconsistency=hook).check_availability(
                "field", d(1), d(5)
            )

        mock_logger.exception.assert_called_once()
