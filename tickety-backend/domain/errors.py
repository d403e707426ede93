"""
Domain: error taxonomy.

Every failure the seller backend reports falls into one of these classes:

    TicketyError (base)
    ├── VerificationFailure - bad or missing webhook signature (400, never retried)
    ├── Unauthenticated     - missing or invalid caller identity (401)
    ├── NotFound            - referenced record is absent
    ├── BusinessException   - a rule or upstream operation rejected the request
    │   └── InvalidOfferTransition - offer already left the pending state
    └── Unavailable         - processor or store failed (500, generic message)

`message` is always safe to show to an end user. Anything technical goes in
`details` / `technical_details` and is only ever logged.
"""

from __future__ import annotations

from typing import Any, Optional


class TicketyError(Exception):
    """
    Base exception for seller-backend errors.

    Attributes:
        message: Human-readable, non-leaking description
        error_code: Machine-readable code for client handling
        details: Extra context for logs
    """

    default_error_code: str = "TICKETY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Response body for the error. Only `message` leaves the process."""

        return {"error": self.message}


class VerificationFailure(TicketyError):
    """Webhook signature missing or invalid."""

    default_error_code = "VERIFICATION_FAILED"


class Unauthenticated(TicketyError):
    """Caller identity is missing or could not be verified."""

    default_error_code = "UNAUTHENTICATED"


class NotFound(TicketyError):
    default_error_code = "NOT_FOUND"


class BusinessException(TicketyError):
    """
    A request was rejected for a business reason.

    `message` is shown to the user verbatim; `technical_details` is for logs.
    """

    default_error_code = "BUSINESS_RULE"

    def __init__(
        self,
        message: str,
        technical_details: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)
        self.technical_details = technical_details


class InvalidOfferTransition(BusinessException):
    default_error_code = "INVALID_OFFER_TRANSITION"


class Unavailable(TicketyError):
    """The payment processor or the store could not serve the request."""

    default_error_code = "UNAVAILABLE"
