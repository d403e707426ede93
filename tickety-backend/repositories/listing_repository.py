"""
Resale listing repository (persistence).

Only the operation the seller backend needs: bulk-cancelling a seller's
active listings. Listing creation and sales belong to the resale flow.
"""

from __future__ import annotations

from supabase import Client  # type: ignore[import-not-found]

from repositories.client import execute, rows_of

_LISTINGS_TABLE: str = "resale_listings"

LISTING_ACTIVE: str = "active"
LISTING_CANCELLED: str = "cancelled"


def cancel_active_listings(client: Client, seller_id: str) -> int:
    """
    Move every `active` listing of `seller_id` to `cancelled`.

    Sold and already cancelled listings are untouched, so repeating the call
    is harmless.

    Returns:
        Number of listings cancelled by this call
    """

    response = execute(
        client.table(_LISTINGS_TABLE)
        .update({"status": LISTING_CANCELLED})
        .eq("seller_id", seller_id)
        .eq("status", LISTING_ACTIVE),
        "cancel active listings",
    )
    return len(rows_of(response))
