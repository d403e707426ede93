"""
Payment-account repository (persistence).

A seller's Stripe Connect state lives on their `profiles` row. This module
only reads and overwrites those columns; it never increments or merges, so
every write is safe to repeat.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.payment_account import ConnectAccountState, PaymentAccount
from repositories.client import execute, rows_of

# Supabase table holding the payment-account columns.
_PROFILES_TABLE: str = "profiles"

_ACCOUNT_COLUMNS: str = (
    "id, stripe_connect_account_id, stripe_connect_onboarded, "
    "stripe_charges_enabled, stripe_payouts_enabled, stripe_details_submitted"
)


def _row_to_account(row: Mapping[str, Any]) -> PaymentAccount:
    return PaymentAccount(
        user_id=str(row["id"]),
        external_account_id=row.get("stripe_connect_account_id") or None,
        charges_enabled=bool(row.get("stripe_charges_enabled")),
        payouts_enabled=bool(row.get("stripe_payouts_enabled")),
        details_submitted=bool(row.get("stripe_details_submitted")),
    )


def get_payment_account(client: Client, user_id: str) -> Optional[PaymentAccount]:
    """
    Fetch the payment-account state for a user.

    Returns:
        PaymentAccount or None if the user has no profile row
    """

    response = execute(
        client.table(_PROFILES_TABLE).select(_ACCOUNT_COLUMNS).eq("id", user_id).limit(1),
        "fetch payment account",
    )
    rows = rows_of(response)
    return _row_to_account(rows[0]) if rows else None


def find_user_id_by_account(client: Client, account_id: str) -> Optional[str]:
    """Return the id of the profile linked to a Connect account, or None."""

    response = execute(
        client.table(_PROFILES_TABLE).select("id").eq("stripe_connect_account_id", account_id).limit(1),
        "find payment account owner",
    )
    rows = rows_of(response)
    return str(rows[0]["id"]) if rows else None


def update_onboarding_flags(client: Client, state: ConnectAccountState) -> None:
    """
    Overwrite the onboarding flags of the account's owner with `state`.

    `stripe_connect_onboarded` is written together with the three flags it is
    derived from, so the invariant holds after every write.
    """

    if state.user_id is None:
        raise ValueError("state has no associated user")

    execute(
        client.table(_PROFILES_TABLE)
        .update(
            {
                "stripe_connect_onboarded": state.onboarded,
                "stripe_charges_enabled": state.charges_enabled,
                "stripe_payouts_enabled": state.payouts_enabled,
                "stripe_details_submitted": state.details_submitted,
            }
        )
        .eq("id", state.user_id),
        "update payment account",
    )


def clear_connect_account(client: Client, user_id: str) -> None:
    """Forget the user's Connect account after deauthorization."""

    execute(
        client.table(_PROFILES_TABLE)
        .update(
            {
                "stripe_connect_account_id": None,
                "stripe_connect_onboarded": False,
                "stripe_charges_enabled": False,
                "stripe_payouts_enabled": False,
                "stripe_details_submitted": False,
            }
        )
        .eq("id", user_id),
        "clear payment account",
    )


def mark_legacy_onboarded(client: Client, user_id: str) -> None:
    """
    Set the coarse `stripe_connect_onboarded` flag only.

    Older mobile builds read this flag instead of the capability columns.
    """

    execute(
        client.table(_PROFILES_TABLE).update({"stripe_connect_onboarded": True}).eq("id", user_id),
        "update legacy onboarded flag",
    )


__all__ = [
    "get_payment_account",
    "find_user_id_by_account",
    "update_onboarding_flags",
    "clear_connect_account",
    "mark_legacy_onboarded",
]
