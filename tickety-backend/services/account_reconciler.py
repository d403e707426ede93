"""
Account reconciler for Stripe Connect webhook events.

Keeps the payment-account columns of `profiles` in line with what Stripe
reports about a seller's connected account.

Handled events:
- account.updated: overwrite the onboarding flags
- account.application.deauthorized: clear the account link (owner found by
  metadata, else by the event's connected account id), then cancel the
  seller's active resale listings

Every handler writes absolute values only, so a redelivered event converges to
the same state. Store failures are logged and the event is still acknowledged:
Stripe redelivering the same payload cannot fix a local failure.

Unknown event types are logged and acknowledged as a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.connect_event import ConnectEvent, ConnectEventType
from domain.payment_account import ConnectAccountState
from repositories.client import StoreError
from repositories.listing_repository import cancel_active_listings
from repositories.payment_account_repository import (
    clear_connect_account,
    find_user_id_by_account,
    update_onboarding_flags,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    """
    What a handler did with an event.

    action: "updated", "deauthorized", "skipped" or "ignored"
    reconciled: False when the primary store write failed
    listings_cancelled: listings cancelled by the cascade (None if it did not run or failed)
    """

    event_type: str
    action: str
    user_id: Optional[str] = None
    reconciled: bool = True
    listings_cancelled: Optional[int] = None


Handler = Callable[[Client, ConnectEvent], ReconcileOutcome]


def handle_account_updated(client: Client, event: ConnectEvent) -> ReconcileOutcome:
    state = ConnectAccountState.from_account_object(event.data_object)

    if state.user_id is None:
        # Accounts not created through Tickety carry no user id.
        logger.info(
            "No user ID in account metadata, skipping",
            extra={"event_id": event.id, "account_id": state.account_id},
        )
        return ReconcileOutcome(event_type=event.type, action="skipped")

    log_context = {
        "event_id": event.id,
        "account_id": state.account_id,
        "user_id": state.user_id,
        "onboarded": state.onboarded,
    }

    try:
        update_onboarding_flags(client, state)
    except StoreError as e:
        logger.error("Failed to update payment account", extra={**log_context, "error": str(e)})
        return ReconcileOutcome(event_type=event.type, action="updated", user_id=state.user_id, reconciled=False)

    logger.info("Updated payment account onboarding status", extra=log_context)
    return ReconcileOutcome(event_type=event.type, action="updated", user_id=state.user_id)


def handle_account_deauthorized(client: Client, event: ConnectEvent) -> ReconcileOutcome:
    state = ConnectAccountState.from_account_object(event.data_object)
    user_id = state.user_id
    account_id = state.account_id

    if user_id is None and event.account:
        # Stripe sends the Application here, not the Account, so there is no
        # metadata; the owner is found through the linked account id instead.
        account_id = event.account
        try:
            user_id = find_user_id_by_account(client, account_id)
        except StoreError as e:
            logger.error(
                "Failed to look up payment account owner",
                extra={"event_id": event.id, "account_id": account_id, "error": str(e)},
            )
            return ReconcileOutcome(event_type=event.type, action="deauthorized", reconciled=False)

    if user_id is None:
        logger.info(
            "No user linked to deauthorized account, skipping",
            extra={"event_id": event.id, "account_id": account_id},
        )
        return ReconcileOutcome(event_type=event.type, action="skipped")

    log_context = {"event_id": event.id, "account_id": account_id, "user_id": user_id}

    try:
        clear_connect_account(client, user_id)
    except StoreError as e:
        logger.error("Failed to clear payment account", extra={**log_context, "error": str(e)})
        return ReconcileOutcome(event_type=event.type, action="deauthorized", user_id=user_id, reconciled=False)

    # The account is already cleared; a failed cascade must not undo that.
    try:
        cancelled = cancel_active_listings(client, user_id)
    except StoreError as e:
        logger.error("Failed to cancel seller listings", extra={**log_context, "error": str(e)})
        cancelled = None

    logger.info(
        "Cleared payment account after deauthorization",
        extra={**log_context, "listings_cancelled": cancelled},
    )
    return ReconcileOutcome(
        event_type=event.type,
        action="deauthorized",
        user_id=user_id,
        listings_cancelled=cancelled,
    )


EVENT_HANDLERS: Dict[ConnectEventType, Handler] = {
    ConnectEventType.ACCOUNT_UPDATED: handle_account_updated,
    ConnectEventType.ACCOUNT_DEAUTHORIZED: handle_account_deauthorized,
}


def dispatch_event(client: Client, event: ConnectEvent) -> ReconcileOutcome:
    """
    Route a verified event to its handler.

    Events without a handler succeed as a no-op so Stripe does not keep
    redelivering them.
    """

    kind = event.kind
    handler = EVENT_HANDLERS.get(kind) if kind is not None else None

    if handler is None:
        logger.info("Unhandled Connect event type", extra={"event_id": event.id, "event_type": event.type})
        return ReconcileOutcome(event_type=event.type, action="ignored")

    logger.info("Processing Connect webhook event", extra={"event_id": event.id, "event_type": event.type})
    return handler(client, event)
