"""
Tests for `domain/seller_balance.py`.

Covers contract rules:
- Balances are looked up by currency code, never by list position.
- Amounts are never negative.
- needs_onboarding == not payouts_enabled.
- The "no account" snapshot has zero balances and needs onboarding.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from domain.seller_balance import (
    BalanceCacheRecord,
    BalanceEntry,
    ProcessorAccountStatus,
    ProcessorBalance,
    SellerBalance,
    amount_for_currency,
)


def _status(payouts_enabled: bool = True) -> ProcessorAccountStatus:
    return ProcessorAccountStatus(
        account_id="acct_1",
        charges_enabled=True,
        payouts_enabled=payouts_enabled,
        details_submitted=True,
    )


def test_amount_for_currency_matches_code_not_position() -> None:
    entries = [BalanceEntry("eur", 900), BalanceEntry("usd", 500)]

    assert amount_for_currency(entries, "usd") == 500
    assert amount_for_currency(entries, "USD") == 500
    assert amount_for_currency(entries, "gbp") == 0
    assert amount_for_currency([], "usd") == 0


def test_amount_for_currency_clamps_negative_amounts() -> None:
    assert amount_for_currency([BalanceEntry("usd", -250)], "usd") == 0


def test_no_account_snapshot() -> None:
    balance = SellerBalance.no_account("usd")

    assert balance.has_account is False
    assert balance.available_balance_cents == 0
    assert balance.pending_balance_cents == 0
    assert balance.payouts_enabled is False
    assert balance.details_submitted is False
    assert balance.needs_onboarding is True
    assert balance.currency == "usd"


def test_from_processor_picks_the_requested_currency() -> None:
    balance = SellerBalance.from_processor(
        _status(),
        ProcessorBalance(
            available=(BalanceEntry("eur", 42), BalanceEntry("usd", 500)),
            pending=(BalanceEntry("usd", 120),),
        ),
        "USD",
    )

    assert balance.has_account is True
    assert balance.available_balance_cents == 500
    assert balance.pending_balance_cents == 120
    assert balance.currency == "usd"
    assert balance.needs_onboarding is False


@pytest.mark.parametrize("payouts_enabled", [True, False])
def test_needs_onboarding_tracks_payouts(payouts_enabled: bool) -> None:
    balance = SellerBalance.from_processor(_status(payouts_enabled), ProcessorBalance(), "usd")

    assert balance.needs_onboarding is (not payouts_enabled)


def test_cache_record_rejects_negative_amounts_and_naive_timestamps() -> None:
    with pytest.raises(ValueError):
        BalanceCacheRecord(user_id="u1", external_account_id="acct_1", available_balance_cents=-1)

    with pytest.raises(ValueError):
        BalanceCacheRecord(user_id="u1", external_account_id="acct_1", pending_balance_cents=-1)

    with pytest.raises(ValueError):
        BalanceCacheRecord(user_id="u1", external_account_id="acct_1", last_synced_at=datetime(2025, 1, 1))

    with pytest.raises(ValueError):
        BalanceCacheRecord(
            user_id="u1",
            external_account_id="acct_1",
            last_synced_at=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=2))),
        )


def test_to_cache_record_carries_the_snapshot() -> None:
    synced_at = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    balance = SellerBalance.from_processor(
        _status(),
        ProcessorBalance(available=(BalanceEntry("usd", 500),)),
        "usd",
    )

    record = balance.to_cache_record("u1", "acct_1", synced_at)

    assert record.has_account is True
    assert record.available_balance_cents == 500
    assert record.pending_balance_cents == 0
    assert record.payouts_enabled is True
    assert record.last_synced_at == synced_at
