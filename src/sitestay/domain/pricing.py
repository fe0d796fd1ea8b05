"""Pricing calculator - nightly rate composition for a concrete stay.

Per night, the rate resolves in strict priority order:
1. first seasonal entry (list order) covering the night, inclusive
2. weekend_price on Friday/Saturday nights, if set
3. base_price

Then one length-of-stay discount (monthly at >= 28 nights takes precedence
over weekly at >= 7) and flat/per-guest fees are applied.

All amounts are integers in the currency's minor unit. Percentage discounts
are computed with Decimal and rounded half-up to a whole minor unit.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict

from sitestay.domain.date_range import InvalidRangeError, each_day, nights as count_nights
from sitestay.domain.sites import Pricing

WEEKLY_MIN_NIGHTS = 7
MONTHLY_MIN_NIGHTS = 28

# date.weekday(): Monday == 0
_WEEKEND_WEEKDAYS = frozenset({4, 5})  # Friday, Saturday


# ── Results ───────────────────────────────────────────────


class FeeBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    cleaning: int = 0
    pet: int = 0
    extra_guest: int = 0

    @property
    def total(self) -> int:
        return self.cleaning + self.pet + self.extra_guest


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    nights: int
    base_price: int
    subtotal: int
    discount: int
    fees: FeeBreakdown
    total: int
    currency: str


# ── Calculation ───────────────────────────────────────────


def night_rate(pricing: Pricing, night: date) -> int:
    """Resolve the price of a single night."""
    for season in pricing.seasonal_pricing:
        if season.covers(night):
            return season.price

    if pricing.weekend_price and night.weekday() in _WEEKEND_WEEKDAYS:
        return pricing.weekend_price

    return pricing.base_price


def discount_pct(pricing: Pricing, nights: int) -> Decimal | None:
    """Return the length-of-stay discount percentage that applies, if any."""
    if nights >= MONTHLY_MIN_NIGHTS and pricing.monthly_discount_pct:
        return pricing.monthly_discount_pct
    if nights >= WEEKLY_MIN_NIGHTS and pricing.weekly_discount_pct:
        return pricing.weekly_discount_pct
    return None


def percentage_of(amount: int, pct: Decimal) -> int:
    """amount * pct / 100, rounded half-up to a whole minor unit."""
    value = Decimal(amount) * pct / Decimal(100)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_price(
    pricing: Pricing,
    *,
    check_in: date,
    check_out: date,
    guest_count: int,
    max_guests: int,
) -> PriceBreakdown:
    """Compute the price breakdown for a stay [check_in, check_out).

    Args:
        pricing: The site's pricing configuration.
        check_in: Arrival day (first night).
        check_out: Departure day (not a night).
        guest_count: Number of guests in the party.
        max_guests: Guests included before additional_guest_fee applies.

    Returns:
        PriceBreakdown with total = subtotal - discount + fees, never negative.

    Raises:
        InvalidRangeError: If the stay has no nights.
    """
    nights = count_nights(check_in, check_out)
    if nights <= 0:
        raise InvalidRangeError(check_in, check_out)

    subtotal = sum(night_rate(pricing, d) for d in each_day(check_in, check_out))

    pct = discount_pct(pricing, nights)
    discount = min(percentage_of(subtotal, pct), subtotal) if pct is not None else 0

    extra_guests = max(0, guest_count - max_guests)
    fees = FeeBreakdown(
        cleaning=pricing.cleaning_fee,
        # TODO: gate pet_fee on a pet count once stay requests carry one
        pet=pricing.pet_fee,
        extra_guest=extra_guests * pricing.additional_guest_fee,
    )

    total = max(0, subtotal - discount + fees.total)

    return PriceBreakdown(
        nights=nights,
        base_price=pricing.base_price,
        subtotal=subtotal,
        discount=discount,
        fees=fees,
        total=total,
        currency=pricing.currency,
    )
