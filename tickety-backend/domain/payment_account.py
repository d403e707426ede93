"""
Domain: Payment-account record (a seller's Stripe Connect link).

Rules implemented here:
- A user owns at most one payment account (keyed by user_id).
- onboarded == charges_enabled AND payouts_enabled AND details_submitted.
- Deauthorization clears the external account id and forces onboarded=False.
  The record itself is never deleted.

Pure domain code: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

# Key in Stripe account metadata that links an account back to our user.
USER_ID_METADATA_KEY: str = "supabase_user_id"


def is_onboarded(charges_enabled: bool, payouts_enabled: bool, details_submitted: bool) -> bool:
    return bool(charges_enabled and payouts_enabled and details_submitted)


@dataclass(frozen=True, slots=True)
class PaymentAccount:
    """
    Snapshot of a user's payment-processor account state.

    `onboarded` is derived, never stored independently of the three flags.
    """

    user_id: str
    external_account_id: Optional[str]
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False

    @property
    def onboarded(self) -> bool:
        return is_onboarded(self.charges_enabled, self.payouts_enabled, self.details_submitted)

    @property
    def has_external_account(self) -> bool:
        return bool(self.external_account_id)


@dataclass(frozen=True, slots=True)
class ConnectAccountState:
    """
    The onboarding flags carried by a Stripe `account` object.

    `user_id` is None when the account was not created by this system
    (no association in its metadata).
    """

    account_id: str
    user_id: Optional[str]
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool

    @property
    def onboarded(self) -> bool:
        return is_onboarded(self.charges_enabled, self.payouts_enabled, self.details_submitted)

    @staticmethod
    def from_account_object(account: Mapping[str, Any]) -> "ConnectAccountState":
        metadata = account.get("metadata") or {}
        user_id = metadata.get(USER_ID_METADATA_KEY) if isinstance(metadata, Mapping) else None
        return ConnectAccountState(
            account_id=str(account.get("id") or ""),
            user_id=str(user_id) if user_id else None,
            charges_enabled=bool(account.get("charges_enabled")),
            payouts_enabled=bool(account.get("payouts_enabled")),
            details_submitted=bool(account.get("details_submitted")),
        )
