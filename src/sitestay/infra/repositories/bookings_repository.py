"""Bookings repository - read access to site bookings for occupancy.

Uses raw SQL with psycopg2 (no ORM).

Only active statuses (pending, confirmed) are returned.
Window overlap for an inclusive window [start, end]:
    booking.check_in <= end AND booking.check_out > start
"""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from sitestay.domain.sites import ACTIVE_STATUSES, Booking


def fetch_active_bookings(
    cur: PgCursor,
    *,
    site_id: str,
    window_start: date,
    window_end: date,
) -> list[Booking]:
    """Fetch active bookings touching any day of [window_start, window_end].

    Args:
        cur: Database cursor.
        site_id: Site identifier.
        window_start: First day of the window (inclusive).
        window_end: Last day of the window (inclusive).

    Returns:
        Bookings ordered by check_in.
    """
    cur.execute(
        """
        SELECT id, site_id, check_in, check_out, status
        FROM site_bookings
        WHERE site_id = %s
          AND status = ANY(%s)
          AND check_in <= %s
          AND check_out > %s
        ORDER BY check_in, id
        """,
        (site_id, list(ACTIVE_STATUSES), window_end, window_start),
    )
    return [
        Booking(
            id=str(row[0]),
            site_id=str(row[1]),
            check_in=row[2],
            check_out=row[3],
            status=row[4],
        )
        for row in cur.fetchall()
    ]
