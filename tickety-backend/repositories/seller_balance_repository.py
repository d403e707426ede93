"""
Seller balance repository (persistence).

The `seller_balances` table caches figures fetched from Stripe. Stripe stays
the source of truth; rows here are only ever overwritten with a newer snapshot.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.seller_balance import BalanceCacheRecord
from domain.time import parse_optional_utc_datetime, require_utc_timestamp
from repositories.client import execute, rows_of

_SELLER_BALANCES_TABLE: str = "seller_balances"


def _row_to_record(row: Mapping[str, Any]) -> BalanceCacheRecord:
    return BalanceCacheRecord(
        user_id=str(row["user_id"]),
        external_account_id=row.get("stripe_account_id") or None,
        available_balance_cents=max(int(row.get("available_balance_cents") or 0), 0),
        pending_balance_cents=max(int(row.get("pending_balance_cents") or 0), 0),
        payouts_enabled=bool(row.get("payouts_enabled")),
        details_submitted=bool(row.get("details_submitted")),
        last_synced_at=parse_optional_utc_datetime(row.get("last_synced_at")),
    )


def get_balance_record(client: Client, user_id: str) -> Optional[BalanceCacheRecord]:
    """
    Fetch the cached balance row of a user.

    Returns:
        BalanceCacheRecord or None if the user never started seller onboarding
    """

    response = execute(
        client.table(_SELLER_BALANCES_TABLE).select("*").eq("user_id", user_id).limit(1),
        "fetch seller balance",
    )
    rows = rows_of(response)
    return _row_to_record(rows[0]) if rows else None


def save_balance_snapshot(client: Client, record: BalanceCacheRecord) -> None:
    """
    Overwrite the cached figures of `record.user_id`.

    The account id column is left alone: it is owned by onboarding.
    """

    if record.last_synced_at is None:
        raise ValueError("last_synced_at is required when saving a snapshot")
    require_utc_timestamp("last_synced_at", record.last_synced_at)

    execute(
        client.table(_SELLER_BALANCES_TABLE)
        .update(
            {
                "available_balance_cents": record.available_balance_cents,
                "pending_balance_cents": record.pending_balance_cents,
                "payouts_enabled": record.payouts_enabled,
                "details_submitted": record.details_submitted,
                "last_synced_at": record.last_synced_at.isoformat(),
            }
        )
        .eq("user_id", record.user_id),
        "update cached balance",
    )
