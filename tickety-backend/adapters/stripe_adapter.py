"""
Stripe API adapter for Connect account operations.

All Stripe calls made by the seller backend go through StripeAdapter so that
they share the same timeout, retry and logging behaviour, and so services can
be handed a fake in tests.

Features:
- Bounded timeout and network retries on every API call
- Stripe SDK errors translated to ProcessorError
- Structured logging with timing metrics
- Results converted to plain domain dataclasses

Usage:
    adapter = StripeAdapter(api_key=settings.stripe_secret_key, timeout_seconds=10)
    status = adapter.retrieve_account("acct_123")
    balance = adapter.retrieve_balance("acct_123")
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import stripe

from domain.seller_balance import BalanceEntry, ProcessorAccountStatus, ProcessorBalance


class ProcessorError(RuntimeError):
    """
    A Stripe call failed.

    Attributes:
        operation: Adapter operation that failed
        stripe_code: Stripe error code, when Stripe returned one
    """

    def __init__(self, message: str, operation: str, stripe_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.stripe_code = stripe_code


def _entries(items: Any) -> tuple[BalanceEntry, ...]:
    return tuple(
        BalanceEntry(currency=str(getattr(item, "currency", "")), amount_cents=int(getattr(item, "amount", 0) or 0))
        for item in (items or [])
    )


class StripeAdapter:
    """
    Adapter for Stripe Connect read operations.

    Instances hold no per-request state and are safe to share between
    threads once constructed.
    """

    def __init__(
        self,
        api_key: str,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        stripe_client: Optional[stripe.StripeClient] = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        # Timeout and retries live on this client, not on the stripe module.
        self._client = stripe_client or stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout_seconds),
            max_network_retries=max_retries,
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def retrieve_account(self, account_id: str) -> ProcessorAccountStatus:
        """
        Fetch the capability flags of a connected account.

        Raises:
            ProcessorError: Stripe rejected the call or could not be reached
        """

        log_context = {"operation": "retrieve_account", "account_id": account_id}
        account = self._call(log_context, self._client.accounts.retrieve, account_id)

        return ProcessorAccountStatus(
            account_id=str(getattr(account, "id", account_id)),
            charges_enabled=bool(getattr(account, "charges_enabled", False)),
            payouts_enabled=bool(getattr(account, "payouts_enabled", False)),
            details_submitted=bool(getattr(account, "details_submitted", False)),
            default_currency=getattr(account, "default_currency", None),
        )

    def retrieve_balance(self, account_id: str) -> ProcessorBalance:
        """
        Fetch the balance held by a connected account.

        Raises:
            ProcessorError: Stripe rejected the call or could not be reached
        """

        log_context = {"operation": "retrieve_balance", "account_id": account_id}
        balance = self._call(log_context, self._client.balance.retrieve, options={"stripe_account": account_id})

        return ProcessorBalance(
            available=_entries(getattr(balance, "available", None)),
            pending=_entries(getattr(balance, "pending", None)),
        )

    def _call(self, log_context: dict[str, Any], func: Any, *args: Any, **kwargs: Any) -> Any:
        logger = self.get_logger()
        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            result = func(*args, **kwargs)
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Stripe operation failed",
                extra={
                    **log_context,
                    "duration_ms": duration_ms,
                    "error_type": type(e).__name__,
                    "stripe_code": getattr(e, "code", None),
                },
            )
            raise ProcessorError(
                f"Stripe {log_context['operation']} failed: {type(e).__name__}",
                operation=log_context["operation"],
                stripe_code=getattr(e, "code", None),
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info("Stripe operation completed", extra={**log_context, "duration_ms": duration_ms})
        return result
