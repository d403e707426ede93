"""
Profile repository: display-name lookups.

Offers reference organizers by user id only; there is no foreign key from
`ticket_offers` to `profiles`. Names are resolved here with separate queries.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from supabase import Client  # type: ignore[import-not-found]

from repositories.client import execute, rows_of

_PROFILES_TABLE: str = "profiles"

UNKNOWN_DISPLAY_NAME: str = "Unknown"


def get_display_name(client: Client, user_id: str) -> Optional[str]:
    response = execute(
        client.table(_PROFILES_TABLE).select("display_name").eq("id", user_id).limit(1),
        "fetch display name",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return rows[0].get("display_name")


def get_display_names(client: Client, user_ids: Iterable[str]) -> Dict[str, str]:
    """
    Resolve display names for many users with a single query.

    Users whose profile has no name map to "Unknown"; users without a profile
    are absent from the result.
    """

    unique_ids = sorted(set(user_ids))
    if not unique_ids:
        return {}

    response = execute(
        client.table(_PROFILES_TABLE).select("id, display_name").in_("id", unique_ids),
        "fetch display names",
    )
    return {
        str(row["id"]): row.get("display_name") or UNKNOWN_DISPLAY_NAME
        for row in rows_of(response)
    }
