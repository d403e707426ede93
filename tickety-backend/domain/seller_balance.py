"""
Domain: Seller balance snapshots.

Rules implemented here:
- The balance cache is a point-in-time snapshot of the processor's figures,
  not a ledger. Consumers must tolerate staleness.
- Amounts are integer cents and never negative.
- A seller without an external account gets the "no account" snapshot:
  zero balances, payouts disabled, onboarding needed.
- Balances are located by currency code. A multi-currency response is searched
  for the matching entry; position in the list carries no meaning.
- needs_onboarding == not payouts_enabled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class BalanceEntry:
    """One currency bucket of a processor balance (available or pending)."""

    currency: str
    amount_cents: int


@dataclass(frozen=True, slots=True)
class ProcessorBalance:
    """Balance as reported by the processor for a connected account."""

    available: Sequence[BalanceEntry] = field(default_factory=tuple)
    pending: Sequence[BalanceEntry] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ProcessorAccountStatus:
    """Capability flags of a connected account as reported by the processor."""

    account_id: str
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool
    default_currency: Optional[str] = None


def amount_for_currency(entries: Sequence[BalanceEntry], currency: str) -> int:
    """
    Return the amount held in `currency`, or 0 if there is no such entry.

    Currency codes are compared case-insensitively. Negative amounts (the
    processor reports them for accounts in debt) are clamped to 0.
    """

    wanted = currency.lower()
    for entry in entries:
        if entry.currency.lower() == wanted:
            return max(int(entry.amount_cents), 0)
    return 0


@dataclass(frozen=True, slots=True)
class BalanceCacheRecord:
    """Row of the seller balance cache."""

    user_id: str
    external_account_id: Optional[str]
    available_balance_cents: int = 0
    pending_balance_cents: int = 0
    payouts_enabled: bool = False
    details_submitted: bool = False
    last_synced_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.available_balance_cents < 0:
            raise ValueError("available_balance_cents must be >= 0")
        if self.pending_balance_cents < 0:
            raise ValueError("pending_balance_cents must be >= 0")
        if self.last_synced_at is not None:
            require_utc_timestamp("last_synced_at", self.last_synced_at)

    @property
    def has_account(self) -> bool:
        return bool(self.external_account_id)


@dataclass(frozen=True, slots=True)
class SellerBalance:
    """What a seller sees when asking for their balance."""

    has_account: bool
    available_balance_cents: int
    pending_balance_cents: int
    payouts_enabled: bool
    details_submitted: bool
    currency: str

    @property
    def needs_onboarding(self) -> bool:
        return not self.payouts_enabled

    @staticmethod
    def no_account(currency: str) -> "SellerBalance":
        return SellerBalance(
            has_account=False,
            available_balance_cents=0,
            pending_balance_cents=0,
            payouts_enabled=False,
            details_submitted=False,
            currency=currency,
        )

    @staticmethod
    def from_processor(
        status: ProcessorAccountStatus,
        balance: ProcessorBalance,
        currency: str,
    ) -> "SellerBalance":
        return SellerBalance(
            has_account=True,
            available_balance_cents=amount_for_currency(balance.available, currency),
            pending_balance_cents=amount_for_currency(balance.pending, currency),
            payouts_enabled=status.payouts_enabled,
            details_submitted=status.details_submitted,
            currency=currency.lower(),
        )

    def to_cache_record(self, user_id: str, external_account_id: str, synced_at: datetime) -> BalanceCacheRecord:
        return BalanceCacheRecord(
            user_id=user_id,
            external_account_id=external_account_id,
            available_balance_cents=self.available_balance_cents,
            pending_balance_cents=self.pending_balance_cents,
            payouts_enabled=self.payouts_enabled,
            details_submitted=self.details_submitted,
            last_synced_at=synced_at,
        )
