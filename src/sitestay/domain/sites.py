"""Site, booking and availability-block models read by the engine.

These records are owned by the storage layer; the engine only reads them.
All money amounts are integers in the currency's minor unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sitestay.domain.capacity import CapacityModel, classify
from sitestay.domain.date_range import DateRange


# ── Enums ─────────────────────────────────────────────────


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"


# Only these statuses occupy capacity.
ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class BlockType(str, Enum):
    BOOKED = "booked"
    BLOCKED = "blocked"
    MAINTENANCE = "maintenance"
    SEASONAL = "seasonal"


# ── Site configuration ────────────────────────────────────


class Capacity(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_guests: int = Field(ge=1)
    max_concurrent_bookings: int = Field(default=1, ge=1, le=100)

    @property
    def model(self) -> CapacityModel:
        return classify(self.max_concurrent_bookings)


class SeasonalRate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(max_length=100)
    start_date: date
    end_date: date
    price: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> SeasonalRate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def covers(self, day: date) -> bool:
        """Inclusive on both ends."""
        return self.start_date <= day <= self.end_date


class Pricing(BaseModel):
    """Per-site nightly pricing.

    seasonal_pricing is evaluated in list order; overlapping seasons are
    allowed and the first match wins. A weekend_price of 0 means unset.
    """

    model_config = ConfigDict(frozen=True)

    base_price: int = Field(gt=0)
    weekend_price: int | None = Field(default=None, ge=0)
    seasonal_pricing: tuple[SeasonalRate, ...] = ()
    weekly_discount_pct: Decimal | None = Field(default=None, ge=0, le=100)
    monthly_discount_pct: Decimal | None = Field(default=None, ge=0, le=100)
    cleaning_fee: int = Field(default=0, ge=0)
    pet_fee: int = Field(default=0, ge=0)
    additional_guest_fee: int = Field(default=0, ge=0)
    currency: str = "VND"


class Site(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    property_id: str | None = None
    group_id: str | None = None
    is_active: bool = True
    capacity: Capacity
    pricing: Pricing

    @property
    def capacity_model(self) -> CapacityModel:
        return self.capacity.model


# ── Occupancy records ─────────────────────────────────────


class Booking(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    site_id: str
    check_in: date
    check_out: date
    status: BookingStatus = BookingStatus.PENDING

    @property
    def is_active(self) -> bool:
        return self.status.value in ACTIVE_STATUSES


class AvailabilityBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    site_id: str
    date: date
    is_available: bool = False
    block_type: BlockType | None = None
    reason: str | None = Field(default=None, max_length=500)


# ── Queries ───────────────────────────────────────────────


@dataclass(frozen=True)
class StayRequest:
    """A proposed stay, built per query and discarded after use.

    Raises:
        InvalidRangeError: If check_in >= check_out.
        ValueError: If guest_count < 1.
    """

    site_id: str
    check_in: date
    check_out: date
    guest_count: int = 1

    def __post_init__(self) -> None:
        DateRange(self.check_in, self.check_out)
        if self.guest_count < 1:
            raise ValueError("guest_count must be >= 1")

    @property
    def stay(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)
