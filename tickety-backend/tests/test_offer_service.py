"""
Tests for `services/offer_service.py`.

Covers:
- Offers match their recipient by user id OR email (sent before sign-up)
- Pagination via one over-fetched row
- Status moves once out of pending; repeats are no-ops, conflicts are rejected
- Claims go through the edge function; its rejection reaches the caller verbatim
- Linking pending offers to a new user
"""

from __future__ import annotations

import pytest
from supabase import FunctionsHttpError  # type: ignore[import-not-found]

from domain.caller import AuthenticatedUser
from domain.errors import BusinessException, InvalidOfferTransition, NotFound, Unauthenticated, Unavailable
from domain.ticket_offer import OfferStatus, TicketMode
from fakes import FakeSupabase
from services.offer_service import (
    CLAIM_FAILED_MESSAGE,
    CLAIM_FUNCTION_NAME,
    cancel_offer,
    claim_free_offer,
    create_offer,
    decline_offer,
    get_my_pending_offers,
    get_offer,
    get_sent_offers,
    link_pending_offers,
)

ORGANIZER = AuthenticatedUser(user_id="organizer-1", email="host@example.com")
FAN = AuthenticatedUser(user_id="fan-1", email="fan@example.com")


@pytest.fixture
def db(supabase: FakeSupabase) -> FakeSupabase:
    supabase.rows("events").extend(
        [
            {"id": "event-1", "title": "Summer Fest"},
            {"id": "event-2", "title": "Winter Gala"},
        ]
    )
    supabase.rows("profiles").extend(
        [
            {"id": "organizer-1", "display_name": "Ada Events"},
            {"id": "organizer-2", "display_name": None},
            {"id": "fan-1", "display_name": "Fan"},
        ]
    )
    return supabase


def _offer(db: FakeSupabase, offer_id: str, **overrides) -> dict:
    row = {
        "id": offer_id,
        "event_id": "event-1",
        "organizer_id": "organizer-1",
        "recipient_email": "fan@example.com",
        "recipient_user_id": None,
        "price_cents": 0,
        "currency": "USD",
        "ticket_mode": "standard",
        "message": None,
        "status": "pending",
        "ticket_id": None,
        "ticket_type_id": None,
        "expires_at": None,
        "created_at": "2025-01-01T10:00:00+00:00",
        "updated_at": None,
    }
    row.update(overrides)
    db.rows("ticket_offers").append(row)
    return row


# ---------------------------------------------------------------------------
# create / read
# ---------------------------------------------------------------------------


def test_create_offer_normalizes_email_and_returns_event_title(db: FakeSupabase) -> None:
    offer = create_offer(
        db,
        ORGANIZER,
        event_id="event-1",
        recipient_email="  Fan@Example.COM ",
        price_cents=0,
        ticket_mode=TicketMode.PRIVATE,
        message="On the house",
    )

    assert offer.status is OfferStatus.PENDING
    assert offer.recipient_email == "fan@example.com"
    assert offer.organizer_id == "organizer-1"
    assert offer.event_title == "Summer Fest"
    assert offer.ticket_mode is TicketMode.PRIVATE
    assert offer.message == "On the house"
    assert offer.recipient_user_id is None
    assert len(db.rows("ticket_offers")) == 1


def test_create_offer_requires_caller(db: FakeSupabase) -> None:
    with pytest.raises(Unauthenticated):
        create_offer(db, None, "event-1", "fan@example.com", 0, TicketMode.STANDARD)

    assert db.rows("ticket_offers") == []


def test_create_offer_rejects_negative_price(db: FakeSupabase) -> None:
    with pytest.raises(ValueError):
        create_offer(db, ORGANIZER, "event-1", "fan@example.com", -100, TicketMode.STANDARD)

    assert db.rows("ticket_offers") == []


def test_create_offer_store_failure_is_unavailable(db: FakeSupabase) -> None:
    db.fail_on.add(("ticket_offers", "insert"))

    with pytest.raises(Unavailable) as exc_info:
        create_offer(db, ORGANIZER, "event-1", "fan@example.com", 0, TicketMode.STANDARD)

    assert exc_info.value.message == "Failed to create offer. Please try again."


def test_get_offer_resolves_organizer_name(db: FakeSupabase) -> None:
    _offer(db, "offer-1")

    offer = get_offer(db, "offer-1")

    assert offer is not None
    assert offer.organizer_name == "Ada Events"
    assert offer.event_title == "Summer Fest"


def test_get_offer_missing_returns_none(db: FakeSupabase) -> None:
    assert get_offer(db, "nope") is None


def test_pending_offers_match_by_user_id_or_email(db: FakeSupabase) -> None:
    _offer(db, "by-email", created_at="2025-01-01T10:00:00+00:00")
    _offer(
        db,
        "by-user",
        recipient_email="old-address@example.com",
        recipient_user_id="fan-1",
        organizer_id="organizer-2",
        created_at="2025-01-03T10:00:00+00:00",
    )
    _offer(db, "other-person", recipient_email="someone@example.com", created_at="2025-01-04T10:00:00+00:00")
    _offer(db, "already-claimed", status="claimed", created_at="2025-01-05T10:00:00+00:00")

    offers = get_my_pending_offers(db, FAN)

    assert [offer.id for offer in offers] == ["by-user", "by-email"]
    assert offers[0].organizer_name == "Unknown"
    assert offers[1].organizer_name == "Ada Events"
    assert db.queries.count(("profiles", "select")) == 1


def test_pending_offers_email_only_recipient(db: FakeSupabase) -> None:
    _offer(db, "offer-1", recipient_email="new@example.com")

    offers = get_my_pending_offers(db, AuthenticatedUser(user_id="new-user", email="New@Example.com"))

    assert [offer.id for offer in offers] == ["offer-1"]


def test_pending_offers_without_caller_is_empty(db: FakeSupabase) -> None:
    _offer(db, "offer-1")

    assert get_my_pending_offers(db, None) == []
    assert db.queries == []


def test_sent_offers_pagination(db: FakeSupabase) -> None:
    for day in range(1, 6):
        _offer(db, f"offer-{day}", created_at=f"2025-01-0{day}T10:00:00+00:00")
    _offer(db, "other-event", event_id="event-2", created_at="2025-01-09T10:00:00+00:00")
    _offer(db, "other-organizer", organizer_id="organizer-2", created_at="2025-01-09T10:00:00+00:00")

    first = get_sent_offers(db, ORGANIZER, "event-1", page=0, page_size=2)
    second = get_sent_offers(db, ORGANIZER, "event-1", page=1, page_size=2)
    last = get_sent_offers(db, ORGANIZER, "event-1", page=2, page_size=2)

    assert [o.id for o in first.items] == ["offer-5", "offer-4"]
    assert first.has_more is True
    assert [o.id for o in second.items] == ["offer-3", "offer-2"]
    assert second.has_more is True
    assert [o.id for o in last.items] == ["offer-1"]
    assert last.has_more is False


def test_sent_offers_exact_page_has_no_more(db: FakeSupabase) -> None:
    _offer(db, "offer-1", created_at="2025-01-01T10:00:00+00:00")
    _offer(db, "offer-2", created_at="2025-01-02T10:00:00+00:00")

    page = get_sent_offers(db, ORGANIZER, "event-1", page=0, page_size=2)

    assert len(page.items) == 2
    assert page.has_more is False


def test_sent_offers_without_caller_is_empty(db: FakeSupabase) -> None:
    page = get_sent_offers(db, None, "event-1", page=1, page_size=5)

    assert page.items == []
    assert page.has_more is False
    assert page.page == 1


@pytest.mark.parametrize("page, page_size", [(-1, 20), (0, 0)])
def test_sent_offers_rejects_bad_paging(db: FakeSupabase, page: int, page_size: int) -> None:
    with pytest.raises(ValueError):
        get_sent_offers(db, ORGANIZER, "event-1", page=page, page_size=page_size)


# ---------------------------------------------------------------------------
# claim
# ---------------------------------------------------------------------------


def test_claim_invokes_edge_function(db: FakeSupabase) -> None:
    db.functions.result = {"success": True, "ticket_id": "ticket-9"}

    result = claim_free_offer(db, "offer-1")

    assert result == {"success": True, "ticket_id": "ticket-9"}
    name, options = db.functions.calls[0]
    assert name == CLAIM_FUNCTION_NAME
    assert options["body"] == {"offer_id": "offer-1"}
    assert db.mutations == []


def test_claim_passes_skip_minting_fee(db: FakeSupabase) -> None:
    claim_free_offer(db, "offer-1", skip_minting_fee=True)

    _, options = db.functions.calls[0]
    assert options["body"] == {"offer_id": "offer-1", "skip_minting_fee": True}


def test_claim_rejection_message_reaches_caller(db: FakeSupabase) -> None:
    db.functions.error = FunctionsHttpError("This offer has already been claimed")

    with pytest.raises(BusinessException) as exc_info:
        claim_free_offer(db, "offer-1")

    assert exc_info.value.message == "This offer has already been claimed"


def test_claim_unexpected_payload_uses_default_message(db: FakeSupabase) -> None:
    db.functions.result = None

    with pytest.raises(BusinessException) as exc_info:
        claim_free_offer(db, "offer-1")

    assert exc_info.value.message == CLAIM_FAILED_MESSAGE


# ---------------------------------------------------------------------------
# decline / cancel
# ---------------------------------------------------------------------------


def test_decline_pending_offer(db: FakeSupabase) -> None:
    row = _offer(db, "offer-1")

    decline_offer(db, "offer-1")

    assert row["status"] == "declined"


def test_cancel_pending_offer(db: FakeSupabase) -> None:
    row = _offer(db, "offer-1")

    cancel_offer(db, "offer-1")

    assert row["status"] == "cancelled"


def test_repeating_a_transition_is_a_no_op(db: FakeSupabase) -> None:
    row = _offer(db, "offer-1")

    decline_offer(db, "offer-1")
    decline_offer(db, "offer-1")

    assert row["status"] == "declined"


@pytest.mark.parametrize("stored", ["claimed", "accepted", "declined", "expired"])
def test_cancel_after_terminal_state_is_rejected(db: FakeSupabase, stored: str) -> None:
    row = _offer(db, "offer-1", status=stored)

    with pytest.raises(InvalidOfferTransition):
        cancel_offer(db, "offer-1")

    assert row["status"] == stored


def test_decline_missing_offer_is_not_found(db: FakeSupabase) -> None:
    with pytest.raises(NotFound):
        decline_offer(db, "nope")


def test_decline_store_failure_is_unavailable(db: FakeSupabase) -> None:
    _offer(db, "offer-1")
    db.fail_on.add(("ticket_offers", "update"))

    with pytest.raises(Unavailable):
        decline_offer(db, "offer-1")


# ---------------------------------------------------------------------------
# link
# ---------------------------------------------------------------------------


def test_link_pending_offers_to_new_user(db: FakeSupabase) -> None:
    unlinked = _offer(db, "unlinked", recipient_email="new@example.com")
    claimed = _offer(db, "claimed", recipient_email="new@example.com", status="claimed")
    linked = _offer(db, "linked", recipient_email="new@example.com", recipient_user_id="someone")

    offers = link_pending_offers(db, "new-user", "New@Example.com")

    assert [offer.id for offer in offers] == ["unlinked"]
    assert unlinked["recipient_user_id"] == "new-user"
    assert claimed["recipient_user_id"] is None
    assert linked["recipient_user_id"] == "someone"


def test_link_pending_offers_nothing_to_link(db: FakeSupabase) -> None:
    assert link_pending_offers(db, "new-user", "nobody@example.com") == []


def test_expired_offer_reads_as_expired_and_cannot_be_declined(db: FakeSupabase) -> None:
    row = _offer(db, "offer-1", status="expired")

    offer = get_offer(db, "offer-1")
    with pytest.raises(InvalidOfferTransition) as exc_info:
        decline_offer(db, "offer-1")

    assert offer is not None and offer.status is OfferStatus.EXPIRED
    assert exc_info.value.message == "This offer is already expired."
    assert row["status"] == "expired"


def test_rejection_body_carries_only_the_user_message() -> None:
    error = BusinessException("This offer has already been claimed", technical_details="FunctionsHttpError 409")

    assert error.to_dict() == {"error": "This offer has already been claimed"}
    assert error.error_code == "BUSINESS_RULE"
