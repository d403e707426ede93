"""
Domain: verified Stripe Connect webhook events.

Only events whose signature has been checked against the raw request body
are ever turned into a ConnectEvent.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class ConnectEventType(str, Enum):
    ACCOUNT_UPDATED = "account.updated"
    ACCOUNT_DEAUTHORIZED = "account.application.deauthorized"

    @staticmethod
    def lookup(value: str) -> Optional["ConnectEventType"]:
        """Return the matching type, or None for events we do not handle."""

        try:
            return ConnectEventType(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class ConnectEvent:
    """
    A verified event.

    `type` is the raw event type string so that unhandled types can still be
    logged; `kind` is its parsed form (None when unhandled).
    """

    id: str
    type: str
    data_object: Mapping[str, Any]
    account: Optional[str] = None
    livemode: bool = False

    @property
    def kind(self) -> Optional[ConnectEventType]:
        return ConnectEventType.lookup(self.type)

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> "ConnectEvent":
        event_id = payload.get("id")
        event_type = payload.get("type")
        if not event_id or not event_type:
            raise ValueError("Event is missing id or type")

        data = payload.get("data") or {}
        data_object = data.get("object") if isinstance(data, Mapping) else None

        return ConnectEvent(
            id=str(event_id),
            type=str(event_type),
            data_object=data_object if isinstance(data_object, Mapping) else {},
            account=payload.get("account"),
            livemode=bool(payload.get("livemode", False)),
        )
