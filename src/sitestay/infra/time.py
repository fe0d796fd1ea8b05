"""Time utilities: UTC timestamps and caller-supplied query deadlines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


class DeadlineExceeded(Exception):
    """Raised when a query's deadline expires before a repository read."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Deadline exceeded before {operation}")


@dataclass(frozen=True)
class Deadline:
    """Absolute point in time after which a query must stop reading.

    Attributes:
        expires_at: Timezone-aware UTC expiry timestamp.
    """

    expires_at: datetime

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        """Create a deadline `seconds` from now."""
        return cls(expires_at=utc_now() + timedelta(seconds=seconds))

    @property
    def expired(self) -> bool:
        return utc_now() >= self.expires_at

    def remaining_ms(self) -> int:
        """Milliseconds left before expiry, never negative."""
        remaining = (self.expires_at - utc_now()).total_seconds()
        return max(0, int(remaining * 1000))

    def check(self, operation: str) -> None:
        """Raise DeadlineExceeded if the deadline has passed."""
        if self.expired:
            raise DeadlineExceeded(operation)
