"""
Ticket offer repository (persistence).

This module provides *only* persistence operations for TicketOffer rows. It
does not resolve organizer names or enforce who may do what; the offer service
does that.

Status changes go through `update_status_if_pending`, a single conditional
UPDATE: the row only changes if it is still pending at write time, so two
concurrent transitions cannot both succeed.
"""

from __future__ import annotations

from typing import Any, List, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.ticket_offer import NewOffer, OfferStatus, normalize_email
from repositories.client import execute, rows_of

_OFFERS_TABLE: str = "ticket_offers"

# Offer columns plus the embedded event title.
_OFFER_SELECT: str = "*, events(title)"


def _quote_filter_value(value: str) -> str:
    """Quote a value for a PostgREST `or` filter (commas and dots are reserved)."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def insert_offer(client: Client, organizer_id: str, offer: NewOffer) -> str:
    """
    Insert a pending offer.

    Returns:
        The new offer id
    """

    payload: dict[str, Any] = {
        "event_id": offer.event_id,
        "organizer_id": organizer_id,
        "recipient_email": normalize_email(offer.recipient_email),
        "price_cents": offer.price_cents,
        "ticket_mode": offer.ticket_mode.value,
        "status": OfferStatus.PENDING.value,
    }
    if offer.message:
        payload["message"] = offer.message
    if offer.ticket_type_id is not None:
        payload["ticket_type_id"] = offer.ticket_type_id

    response = execute(client.table(_OFFERS_TABLE).insert(payload), "create ticket offer")
    rows = rows_of(response)
    if not rows:
        raise RuntimeError("Failed to create ticket offer: no row returned")
    return str(rows[0]["id"])


def fetch_offer_row(client: Client, offer_id: str) -> Optional[dict[str, Any]]:
    response = execute(
        client.table(_OFFERS_TABLE).select(_OFFER_SELECT).eq("id", offer_id).limit(1),
        "fetch ticket offer",
    )
    rows = rows_of(response)
    return rows[0] if rows else None


def list_pending_rows_for_recipient(
    client: Client,
    user_id: str,
    email: Optional[str],
) -> List[dict[str, Any]]:
    """
    Pending offers addressed to a user, newest first.

    Matches on recipient_user_id OR recipient_email: an offer sent before the
    recipient signed up only carries the email.
    """

    match = f"recipient_user_id.eq.{_quote_filter_value(user_id)}"
    if email:
        match += f",recipient_email.eq.{_quote_filter_value(normalize_email(email))}"

    response = execute(
        client.table(_OFFERS_TABLE)
        .select(_OFFER_SELECT)
        .eq("status", OfferStatus.PENDING.value)
        .or_(match)
        .order("created_at", desc=True),
        "list pending ticket offers",
    )
    return rows_of(response)


def list_sent_rows(
    client: Client,
    organizer_id: str,
    event_id: str,
    offset: int,
    limit: int,
) -> List[dict[str, Any]]:
    """Offers an organizer sent for an event, newest first, `limit` rows from `offset`."""

    if offset < 0 or limit < 1:
        raise ValueError("offset must be >= 0 and limit >= 1")

    response = execute(
        client.table(_OFFERS_TABLE)
        .select(_OFFER_SELECT)
        .eq("organizer_id", organizer_id)
        .eq("event_id", event_id)
        .order("created_at", desc=True)
        .range(offset, offset + limit - 1),
        "list sent ticket offers",
    )
    return rows_of(response)


def update_status_if_pending(client: Client, offer_id: str, status: OfferStatus) -> bool:
    """
    Set `status` on the offer if it is still pending.

    Returns:
        True if the row was updated, False if it was missing or no longer pending
    """

    response = execute(
        client.table(_OFFERS_TABLE)
        .update({"status": status.value})
        .eq("id", offer_id)
        .eq("status", OfferStatus.PENDING.value),
        f"mark ticket offer {status.value}",
    )
    return bool(rows_of(response))


def link_pending_rows_to_user(client: Client, user_id: str, email: str) -> List[dict[str, Any]]:
    """
    Attach a newly signed-up user to the pending offers sent to their email.

    Only rows without a recipient user are touched.

    Returns:
        The updated rows
    """

    response = execute(
        client.table(_OFFERS_TABLE)
        .update({"recipient_user_id": user_id})
        .eq("recipient_email", normalize_email(email))
        .eq("status", OfferStatus.PENDING.value)
        .is_("recipient_user_id", "null"),
        "link pending ticket offers",
    )
    return rows_of(response)
