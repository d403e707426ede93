"""
Seller balance sync service.

Answers "what is my balance?" for a seller and refreshes the cached copy in
`seller_balances` as a side effect.

Process:
1. Look up the caller's cached row. No Stripe account -> the "no account"
   snapshot, without calling Stripe.
2. Fetch account status and balance from Stripe in parallel.
3. Pick the balance entries in the account's currency.
4. Overwrite the cache (best-effort).
5. Set the legacy onboarded flag when payouts and charges are enabled (best-effort).
6. Return the fresh snapshot.

Store or Stripe failures on the main path surface as Unavailable with a
generic message; details go to the log.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from supabase import Client  # type: ignore[import-not-found]

from adapters.stripe_adapter import ProcessorError, StripeAdapter
from domain.caller import AuthenticatedUser
from domain.errors import Unauthenticated, Unavailable
from domain.seller_balance import SellerBalance
from domain.time import utc_now
from repositories.client import StoreError
from repositories.payment_account_repository import mark_legacy_onboarded
from repositories.seller_balance_repository import get_balance_record, save_balance_snapshot

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE: str = "Failed to fetch balance"


def get_seller_balance(
    client: Client,
    stripe_adapter: StripeAdapter,
    caller: Optional[AuthenticatedUser],
    default_currency: str = "usd",
    fetch_timeout_seconds: float = 15.0,
) -> SellerBalance:
    """
    Return the caller's current seller balance, refreshing the cache.

    Args:
        client: Supabase client (service role)
        stripe_adapter: Stripe adapter used for the two account reads
        caller: The authenticated caller
        default_currency: Currency used when the account reports none
        fetch_timeout_seconds: Upper bound for the parallel Stripe fetch

    Raises:
        Unauthenticated: no caller
        Unavailable: the store or Stripe failed
    """

    if caller is None:
        raise Unauthenticated("Missing authorization header")

    user_id = caller.user_id

    try:
        record = get_balance_record(client, user_id)
    except StoreError as e:
        logger.error("Failed to read seller balance", extra={"user_id": user_id, "error": str(e)})
        raise Unavailable(GENERIC_FAILURE_MESSAGE) from e

    account_id = record.external_account_id if record is not None else None
    if not account_id:
        logger.debug("No seller account yet", extra={"user_id": user_id})
        return SellerBalance.no_account(default_currency)

    deadline = time.monotonic() + fetch_timeout_seconds
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="balance-sync")
    try:
        status_future = pool.submit(stripe_adapter.retrieve_account, account_id)
        balance_future = pool.submit(stripe_adapter.retrieve_balance, account_id)
        status = status_future.result(timeout=max(deadline - time.monotonic(), 0))
        balance = balance_future.result(timeout=max(deadline - time.monotonic(), 0))
    except (ProcessorError, FutureTimeoutError) as e:
        logger.error(
            "Failed to fetch seller balance from Stripe",
            extra={"user_id": user_id, "account_id": account_id, "error_type": type(e).__name__, "error": str(e)},
        )
        raise Unavailable(GENERIC_FAILURE_MESSAGE) from e
    finally:
        # Never wait for a call that outlived the deadline; its result is discarded.
        pool.shutdown(wait=False, cancel_futures=True)

    currency = (status.default_currency or default_currency).lower()
    snapshot = SellerBalance.from_processor(status, balance, currency)

    try:
        save_balance_snapshot(client, snapshot.to_cache_record(user_id, account_id, utc_now()))
    except StoreError as e:
        # The caller still gets the fresh figures; the next sync rewrites the cache.
        logger.error("Failed to update cached balance", extra={"user_id": user_id, "error": str(e)})

    if status.payouts_enabled and status.charges_enabled:
        try:
            mark_legacy_onboarded(client, user_id)
        except StoreError as e:
            logger.warning("Failed to set legacy onboarded flag", extra={"user_id": user_id, "error": str(e)})

    logger.info(
        "Fetched seller balance",
        extra={
            "user_id": user_id,
            "available_balance_cents": snapshot.available_balance_cents,
            "pending_balance_cents": snapshot.pending_balance_cents,
            "currency": snapshot.currency,
        },
    )
    return snapshot
