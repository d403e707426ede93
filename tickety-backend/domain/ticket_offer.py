"""
Domain: Ticket offers (favor/comp tickets sent by organizers).

Rules implemented here:
- An offer starts in PENDING and moves exactly once to a terminal state:
  CLAIMED, DECLINED, CANCELLED or EXPIRED (set by the claim function when
  the offer is past expires_at). Nothing leaves a terminal state.
- recipient_email is stored normalized (trimmed, lower-cased).
- The recipient is matched by user id OR by email; an offer may be sent to
  someone who has no account yet, so recipient_user_id is nullable.
- price_cents is an integer >= 0; 0 means a free offer.
- Offers are never deleted.

Pure domain code: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from .time import parse_optional_utc_datetime, parse_utc_datetime, require_utc_timestamp

T = TypeVar("T")


class OfferStatus(str, Enum):
    PENDING = "pending"
    CLAIMED = "claimed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not OfferStatus.PENDING

    @staticmethod
    def parse(value: Optional[str]) -> "OfferStatus":
        """
        Parse a stored status.

        Older rows use "accepted" for a claimed offer. Unknown values are
        treated as pending, matching how the mobile client reads them.
        """

        if value == "accepted":
            return OfferStatus.CLAIMED
        try:
            return OfferStatus(value)
        except ValueError:
            return OfferStatus.PENDING


class TicketMode(str, Enum):
    """Ticket mode determines on-chain/off-chain behavior and resale eligibility."""

    STANDARD = "standard"
    PRIVATE = "private"
    PUBLIC = "public"

    @property
    def can_resale(self) -> bool:
        return self is not TicketMode.PRIVATE

    @staticmethod
    def parse(value: Optional[str]) -> "TicketMode":
        try:
            return TicketMode(value)
        except ValueError:
            return TicketMode.STANDARD


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_transition(current: OfferStatus, target: OfferStatus) -> None:
    """
    Raise ValueError unless `current -> target` is allowed.

    The only allowed moves are PENDING -> terminal.
    """

    if not target.is_terminal:
        raise ValueError(f"{target.value} is not a terminal offer status")
    if current is not OfferStatus.PENDING:
        raise ValueError(f"Offer is already {current.value}")


@dataclass(frozen=True, slots=True)
class TicketOffer:
    id: str
    event_id: str
    organizer_id: str
    recipient_email: str
    price_cents: int
    ticket_mode: TicketMode
    status: OfferStatus
    created_at: datetime
    recipient_user_id: Optional[str] = None
    currency: str = "USD"
    message: Optional[str] = None
    ticket_id: Optional[str] = None
    ticket_type_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined data
    event_title: Optional[str] = None
    organizer_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.price_cents < 0:
            raise ValueError("price_cents must be >= 0")
        require_utc_timestamp("created_at", self.created_at)
        if self.expires_at is not None:
            require_utc_timestamp("expires_at", self.expires_at)

    @property
    def is_free(self) -> bool:
        return self.price_cents == 0

    @property
    def is_paid(self) -> bool:
        return self.price_cents > 0

    def is_expired(self, as_of: datetime) -> bool:
        require_utc_timestamp("as_of", as_of)
        return self.expires_at is not None and as_of > self.expires_at

    @property
    def formatted_price(self) -> str:
        if self.price_cents == 0:
            return "Free"
        return f"${self.price_cents / 100:.2f}"

    def is_addressed_to(self, user_id: Optional[str], email: Optional[str]) -> bool:
        if user_id and self.recipient_user_id == user_id:
            return True
        return bool(email) and self.recipient_email == normalize_email(email or "")

    @staticmethod
    def from_row(row: Mapping[str, Any], organizer_name: Optional[str] = None) -> "TicketOffer":
        """
        Convert a Supabase row (optionally with an embedded `events(title)`) into a TicketOffer.
        """

        events = row.get("events")
        event_title = events.get("title") if isinstance(events, Mapping) else None

        return TicketOffer(
            id=str(row["id"]),
            event_id=str(row["event_id"]),
            organizer_id=str(row["organizer_id"]),
            recipient_email=str(row["recipient_email"]),
            recipient_user_id=row.get("recipient_user_id"),
            price_cents=int(row.get("price_cents") or 0),
            currency=str(row.get("currency") or "USD"),
            ticket_mode=TicketMode.parse(row.get("ticket_mode")),
            message=row.get("message"),
            status=OfferStatus.parse(row.get("status")),
            ticket_id=row.get("ticket_id"),
            ticket_type_id=row.get("ticket_type_id"),
            expires_at=parse_optional_utc_datetime(row.get("expires_at")),
            created_at=parse_utc_datetime(row["created_at"]),
            updated_at=parse_optional_utc_datetime(row.get("updated_at")),
            event_title=event_title,
            organizer_name=organizer_name,
        )


@dataclass(frozen=True, slots=True)
class PaginatedResult(Generic[T]):
    """
    One page of results.

    `page` is 0-indexed. `has_more` is True iff at least one row exists past
    this page.
    """

    items: List[T]
    page: int
    page_size: int
    has_more: bool

    @staticmethod
    def empty(page: int = 0, page_size: int = 20) -> "PaginatedResult[Any]":
        return PaginatedResult(items=[], page=page, page_size=page_size, has_more=False)

    @staticmethod
    def from_overfetch(rows: List[T], page: int, page_size: int) -> "PaginatedResult[T]":
        """
        Build a page from a query that asked for page_size + 1 rows.

        The extra row only signals that another page exists; it is dropped.
        """

        has_more = len(rows) > page_size
        items = rows[:page_size] if has_more else list(rows)
        return PaginatedResult(items=items, page=page, page_size=page_size, has_more=has_more)

    @property
    def is_first_page(self) -> bool:
        return self.page == 0

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True, slots=True)
class NewOffer:
    """Validated input for creating an offer."""

    event_id: str
    recipient_email: str
    price_cents: int
    ticket_mode: TicketMode
    message: Optional[str] = None
    ticket_type_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.price_cents < 0:
            raise ValueError("price_cents must be >= 0")
        if not normalize_email(self.recipient_email):
            raise ValueError("recipient_email is required")
