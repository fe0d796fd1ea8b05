"""Availability repository - read access to host-imposed day blocks.

Uses raw SQL with psycopg2 (no ORM). Rows are returned regardless of the
site's capacity model; discarding blocks on undesignated sites is the
availability index's job.
"""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from sitestay.domain.sites import AvailabilityBlock


def fetch_blocked_days(
    cur: PgCursor,
    *,
    site_id: str,
    window_start: date,
    window_end: date,
) -> list[AvailabilityBlock]:
    """Fetch is_available = false rows dated inside [window_start, window_end]."""
    cur.execute(
        """
        SELECT site_id, date, block_type, reason
        FROM site_availability
        WHERE site_id = %s
          AND is_available = false
          AND date >= %s
          AND date <= %s
        ORDER BY date
        """,
        (site_id, window_start, window_end),
    )
    return [
        AvailabilityBlock(
            site_id=str(row[0]),
            date=row[1],
            is_available=False,
            block_type=row[2],
            reason=row[3],
        )
        for row in cur.fetchall()
    ]
