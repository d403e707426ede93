"""
Ticket offer lifecycle service.

Organizers send favor/comp tickets to a recipient email; the recipient claims
or declines, the organizer may cancel:

    pending -> claimed | declined | cancelled | expired

Handles:
- Creating offers (normalized recipient email, enriched with the event title)
- Reading one offer or lists of offers, enriched with organizer display names
  through a separate profile lookup (offers and profiles are not joined)
- Delegating the claim to the `claim-favor-offer` edge function, which owns
  ticket creation and the write to the offer
- Declining/cancelling with a pending-only conditional update
- Linking offers sent to an email once that person signs up
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from supabase import Client, FunctionsError  # type: ignore[import-not-found]

from domain.caller import AuthenticatedUser
from domain.errors import BusinessException, InvalidOfferTransition, NotFound, Unauthenticated, Unavailable
from domain.ticket_offer import (
    NewOffer,
    OfferStatus,
    PaginatedResult,
    TicketMode,
    TicketOffer,
    check_transition,
)
from repositories.client import StoreError
from repositories.profile_repository import get_display_name, get_display_names
from repositories.ticket_offer_repository import (
    fetch_offer_row,
    insert_offer,
    link_pending_rows_to_user,
    list_pending_rows_for_recipient,
    list_sent_rows,
    update_status_if_pending,
)

logger = logging.getLogger(__name__)

CLAIM_FUNCTION_NAME: str = "claim-favor-offer"
CLAIM_FAILED_MESSAGE: str = "Failed to claim offer. Please try again."
DEFAULT_PAGE_SIZE: int = 20


@contextmanager
def _store_call(action: str, **log_context: Any) -> Iterator[None]:
    """Translate store failures into Unavailable with a user-safe message."""

    try:
        yield
    except StoreError as e:
        logger.error(f"Failed to {action}", extra={**log_context, "error": str(e)})
        raise Unavailable(f"Failed to {action}. Please try again.") from e


def create_offer(
    client: Client,
    caller: Optional[AuthenticatedUser],
    event_id: str,
    recipient_email: str,
    price_cents: int,
    ticket_mode: TicketMode,
    message: Optional[str] = None,
    ticket_type_id: Optional[str] = None,
) -> TicketOffer:
    """
    Create a pending offer from the calling organizer.

    Returns:
        The stored offer, including the event title

    Raises:
        Unauthenticated: no caller
        ValueError: invalid price or empty recipient email
        Unavailable: the store failed
    """

    if caller is None:
        raise Unauthenticated("You must be signed in to send a ticket offer")

    new_offer = NewOffer(
        event_id=event_id,
        recipient_email=recipient_email,
        price_cents=price_cents,
        ticket_mode=ticket_mode,
        message=message,
        ticket_type_id=ticket_type_id,
    )

    logger.info(
        "Creating ticket offer",
        extra={
            "event_id": event_id,
            "organizer_id": caller.user_id,
            "price_cents": price_cents,
            "ticket_mode": ticket_mode.value,
        },
    )

    with _store_call("create offer", event_id=event_id, organizer_id=caller.user_id):
        offer_id = insert_offer(client, caller.user_id, new_offer)
        row = fetch_offer_row(client, offer_id)

    if row is None:
        raise Unavailable("Failed to create offer. Please try again.")

    offer = TicketOffer.from_row(row)
    logger.info("Ticket offer created", extra={"offer_id": offer.id})
    return offer


def get_offer(client: Client, offer_id: str) -> Optional[TicketOffer]:
    """
    Fetch one offer with its event title and organizer display name.

    Returns:
        TicketOffer or None if no such offer is visible
    """

    with _store_call("load offer", offer_id=offer_id):
        row = fetch_offer_row(client, offer_id)
        if row is None:
            return None
        organizer_name = get_display_name(client, str(row["organizer_id"]))

    return TicketOffer.from_row(row, organizer_name=organizer_name)


def get_my_pending_offers(client: Client, caller: Optional[AuthenticatedUser]) -> List[TicketOffer]:
    """
    Pending offers addressed to the caller, newest first.

    An offer matches by recipient user id or by recipient email. Organizer
    names for all offers are resolved with one profile query.
    """

    if caller is None:
        return []

    with _store_call("load offers", user_id=caller.user_id):
        rows = list_pending_rows_for_recipient(client, caller.user_id, caller.email)
        names: Dict[str, str] = get_display_names(client, (str(row["organizer_id"]) for row in rows))

    offers = [TicketOffer.from_row(row, organizer_name=names.get(str(row["organizer_id"]))) for row in rows]
    logger.debug("Found pending offers", extra={"user_id": caller.user_id, "count": len(offers)})
    return offers


def get_sent_offers(
    client: Client,
    caller: Optional[AuthenticatedUser],
    event_id: str,
    page: int = 0,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginatedResult[TicketOffer]:
    """
    Offers the caller sent for an event, newest first, one page at a time.

    One row more than `page_size` is requested; its presence sets `has_more`.
    """

    if page < 0:
        raise ValueError("page must be >= 0")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    if caller is None:
        return PaginatedResult.empty(page=page, page_size=page_size)

    with _store_call("load sent offers", event_id=event_id, organizer_id=caller.user_id):
        rows = list_sent_rows(client, caller.user_id, event_id, offset=page * page_size, limit=page_size + 1)

    offers = [TicketOffer.from_row(row) for row in rows]
    return PaginatedResult.from_overfetch(offers, page=page, page_size=page_size)


def claim_free_offer(client: Client, offer_id: str, skip_minting_fee: bool = False) -> Dict[str, Any]:
    """
    Claim a free offer through the `claim-favor-offer` edge function.

    The edge function validates the recipient, creates the ticket and marks
    the offer claimed; this core never writes the claimed status itself.

    Returns:
        The edge function's result map

    Raises:
        BusinessException: the edge function rejected the claim
    """

    logger.info("Claiming free offer", extra={"offer_id": offer_id, "skip_minting_fee": skip_minting_fee})

    body: Dict[str, Any] = {"offer_id": offer_id}
    if skip_minting_fee:
        body["skip_minting_fee"] = True

    try:
        data = client.functions.invoke(
            CLAIM_FUNCTION_NAME,
            invoke_options={"body": body, "responseType": "json"},
        )
    except FunctionsError as e:
        upstream_message = getattr(e, "message", None) or str(e) or None
        logger.error(
            "Failed to claim offer",
            extra={"offer_id": offer_id, "status": getattr(e, "status", None), "error": upstream_message},
        )
        raise BusinessException(
            upstream_message or CLAIM_FAILED_MESSAGE,
            technical_details=f"Edge function error: {upstream_message}",
        ) from e

    if not isinstance(data, dict):
        logger.error("Claim returned an unexpected payload", extra={"offer_id": offer_id})
        raise BusinessException(
            CLAIM_FAILED_MESSAGE,
            technical_details=f"Edge function returned {type(data).__name__}",
        )

    logger.info("Offer claimed successfully", extra={"offer_id": offer_id})
    return data


def _finish_offer(client: Client, offer_id: str, target: OfferStatus) -> None:
    """
    Move a pending offer to `target`.

    Repeating the same transition is a no-op. Any other move out of a
    terminal state raises InvalidOfferTransition.
    """

    with _store_call("update offer", offer_id=offer_id, target=target.value):
        updated = update_status_if_pending(client, offer_id, target)
        if updated:
            logger.info("Offer status changed", extra={"offer_id": offer_id, "status": target.value})
            return
        row = fetch_offer_row(client, offer_id)

    if row is None:
        raise NotFound("Offer not found", details={"offer_id": offer_id})

    current = OfferStatus.parse(row.get("status"))
    if current is target:
        logger.info("Offer already in requested state", extra={"offer_id": offer_id, "status": target.value})
        return

    try:
        check_transition(current, target)
    except ValueError as e:
        raise InvalidOfferTransition(
            f"This offer is already {current.value}.",
            technical_details=str(e),
            details={"offer_id": offer_id, "current": current.value, "target": target.value},
        ) from e

    # Still pending, yet the update matched nothing: row-level security
    # refused the write for this client.
    raise Unavailable("Failed to update offer. Please try again.")


def decline_offer(client: Client, offer_id: str) -> None:
    """Recipient declines a pending offer."""

    logger.info("Declining offer", extra={"offer_id": offer_id})
    _finish_offer(client, offer_id, OfferStatus.DECLINED)


def cancel_offer(client: Client, offer_id: str) -> None:
    """Organizer withdraws a pending offer."""

    logger.info("Cancelling offer", extra={"offer_id": offer_id})
    _finish_offer(client, offer_id, OfferStatus.CANCELLED)


def link_pending_offers(client: Client, user_id: str, email: str) -> List[TicketOffer]:
    """
    Attach a new user to the pending offers sent to their email before they signed up.

    Returns:
        The offers now linked to the user
    """

    with _store_call("link pending offers", user_id=user_id):
        rows = link_pending_rows_to_user(client, user_id, email)

    if rows:
        logger.info("Linked pending offers to new user", extra={"user_id": user_id, "count": len(rows)})
    return [TicketOffer.from_row(row) for row in rows]
