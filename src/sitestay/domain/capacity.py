"""Capacity model: designated vs undesignated sites.

max_concurrent_bookings == 1 -> DESIGNATED (one exclusive occupant per day)
max_concurrent_bookings  > 1 -> UNDESIGNATED (shared pool, "N spots left")

Every branch on the site's capacity model goes through classify().
"""

from __future__ import annotations

from enum import Enum


class CapacityModel(str, Enum):
    DESIGNATED = "designated"
    UNDESIGNATED = "undesignated"


def classify(max_concurrent_bookings: int) -> CapacityModel:
    """Classify a site by its concurrent-booking ceiling.

    Raises:
        ValueError: If max_concurrent_bookings < 1.
    """
    if max_concurrent_bookings < 1:
        raise ValueError("max_concurrent_bookings must be >= 1")
    if max_concurrent_bookings == 1:
        return CapacityModel.DESIGNATED
    return CapacityModel.UNDESIGNATED


def is_capacity_exhausted(occupancy: int, max_concurrent_bookings: int) -> bool:
    return occupancy >= max_concurrent_bookings


def accepts_availability_blocks(model: CapacityModel) -> bool:
    """Host-imposed day blocks are only meaningful on designated sites."""
    return model is CapacityModel.DESIGNATED
