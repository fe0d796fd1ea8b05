"""Postgres-backed SiteStore used by SiteAvailabilityService.

Each read runs in its own short transaction on its own connection, checked
out of a ThreadedConnectionPool (or opened from DATABASE_URL when no pool is
given), so concurrent reads never share a server transaction. A caller
deadline becomes the transaction's statement_timeout so the server aborts
slow reads; without a deadline SITESTAY_STATEMENT_TIMEOUT_MS applies, if set.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Iterator

from psycopg2.extensions import cursor as PgCursor
from psycopg2.pool import ThreadedConnectionPool

from sitestay.domain.sites import AvailabilityBlock, Booking, Site
from sitestay.infra.db import default_statement_timeout_ms, pooled_conn, txn
from sitestay.infra.repositories.availability_repository import fetch_blocked_days
from sitestay.infra.repositories.bookings_repository import fetch_active_bookings
from sitestay.infra.repositories.sites_repository import (
    fetch_site_by_id,
    fetch_sites_in_group,
)
from sitestay.infra.time import Deadline


class PostgresSiteStore:
    """Read-only store over the sites, site_bookings and site_availability tables.

    Safe to share between threads.

    Args:
        pool: Optional pool (see infra.db.create_pool). If None, every read
            opens and closes its own connection from DATABASE_URL.
    """

    def __init__(self, pool: ThreadedConnectionPool | None = None) -> None:
        self._pool = pool

    def _timeout_ms(self, deadline: Deadline | None) -> int | None:
        if deadline is not None:
            return deadline.remaining_ms()
        return default_statement_timeout_ms()

    @contextmanager
    def _read(self, deadline: Deadline | None) -> Iterator[PgCursor]:
        timeout_ms = self._timeout_ms(deadline)
        if self._pool is None:
            with txn(statement_timeout_ms=timeout_ms) as cur:
                yield cur
            return

        with pooled_conn(self._pool) as conn:
            with txn(conn, statement_timeout_ms=timeout_ms) as cur:
                yield cur

    def find_site_by_id(
        self, site_id: str, deadline: Deadline | None = None
    ) -> Site | None:
        with self._read(deadline) as cur:
            return fetch_site_by_id(cur, site_id=site_id)

    def find_active_bookings(
        self,
        site_id: str,
        window_start: date,
        window_end: date,
        deadline: Deadline | None = None,
    ) -> list[Booking]:
        with self._read(deadline) as cur:
            return fetch_active_bookings(
                cur, site_id=site_id, window_start=window_start, window_end=window_end
            )

    def find_blocked_days(
        self,
        site_id: str,
        window_start: date,
        window_end: date,
        deadline: Deadline | None = None,
    ) -> list[AvailabilityBlock]:
        with self._read(deadline) as cur:
            return fetch_blocked_days(
                cur, site_id=site_id, window_start=window_start, window_end=window_end
            )

    def find_sites_in_group(
        self, group_id: str, deadline: Deadline | None = None
    ) -> list[Site]:
        with self._read(deadline) as cur:
            return fetch_sites_in_group(cur, group_id=group_id)
