"""
Webhook signature verification for Stripe Connect events.

The signature covers the exact bytes Stripe sent. Verification therefore runs
on the raw request body, before any JSON parsing; a body that was parsed and
re-serialized would no longer match.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import stripe

from domain.connect_event import ConnectEvent
from domain.errors import VerificationFailure

logger = logging.getLogger(__name__)

# Stripe's default replay window.
DEFAULT_TOLERANCE_SECONDS: int = 300


def verify_webhook(
    payload: bytes,
    signature: Optional[str],
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> ConnectEvent:
    """
    Verify a webhook delivery and parse it into a ConnectEvent.

    Args:
        payload: Raw request body, unmodified
        signature: Value of the Stripe-Signature header
        secret: Endpoint signing secret
        tolerance: Maximum accepted age of the signature timestamp, in seconds

    Returns:
        The verified event

    Raises:
        VerificationFailure: missing/invalid signature or malformed payload
    """

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        raise VerificationFailure("Missing stripe-signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Webhook payload is not valid UTF-8")
        raise VerificationFailure("Invalid payload") from None

    try:
        stripe.WebhookSignature.verify_header(body, signature, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed", extra={"error": str(e)})
        raise VerificationFailure("Invalid signature", details={"error": str(e)}) from e

    try:
        return ConnectEvent.from_payload(json.loads(body))
    except (ValueError, AttributeError) as e:
        logger.warning("Webhook payload could not be parsed", extra={"error": str(e)})
        raise VerificationFailure("Invalid payload", details={"error": str(e)}) from e
