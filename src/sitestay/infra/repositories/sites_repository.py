"""Sites repository - read access to site configuration.

Uses raw SQL with psycopg2 (no ORM). Capacity and pricing live in JSONB
columns and are validated into pydantic models on read.
"""

from typing import Any

from psycopg2.extensions import cursor as PgCursor

from sitestay.domain.sites import Capacity, Pricing, Site

_SITE_COLUMNS = "id, name, property_id, group_id, is_active, capacity, pricing"


def _row_to_site(row: tuple[Any, ...]) -> Site:
    return Site(
        id=str(row[0]),
        name=row[1] or "",
        property_id=str(row[2]) if row[2] is not None else None,
        group_id=str(row[3]) if row[3] is not None else None,
        is_active=bool(row[4]),
        capacity=Capacity.model_validate(row[5] or {}),
        pricing=Pricing.model_validate(row[6] or {}),
    )


def fetch_site_by_id(cur: PgCursor, *, site_id: str) -> Site | None:
    """Fetch a single site.

    Args:
        cur: Database cursor.
        site_id: Site identifier.

    Returns:
        Site, or None if it does not exist.
    """
    cur.execute(
        f"SELECT {_SITE_COLUMNS} FROM sites WHERE id = %s",
        (site_id,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    return _row_to_site(row)


def fetch_sites_in_group(cur: PgCursor, *, group_id: str) -> list[Site]:
    """Fetch the active sites of an undesignated group, ordered by id."""
    cur.execute(
        f"""
        SELECT {_SITE_COLUMNS}
        FROM sites
        WHERE group_id = %s
          AND is_active = true
        ORDER BY id
        """,
        (group_id,),
    )
    return [_row_to_site(row) for row in cur.fetchall()]
