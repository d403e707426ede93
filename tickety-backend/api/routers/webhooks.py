"""
Webhook API Endpoints.

Receives Stripe Connect account events.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_settings, get_supabase
from api.models import ErrorResponse, WebhookAck
from config.settings import Settings
from domain.errors import VerificationFailure
from services.account_reconciler import dispatch_event
from services.webhook_verifier import verify_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/webhooks/connect",
    response_model=WebhookAck,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Stripe Connect Webhook",
    description="Verify and process Stripe Connect account events."
)
async def connect_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: Client = Depends(get_supabase),
):
    """
    Receive a Stripe Connect webhook.

    **Process:**
    1. Verifies the Stripe-Signature header against the raw request body
    2. Dispatches the event by type (`account.updated`,
       `account.application.deauthorized`); other types are acknowledged as no-ops
    3. Returns `{"received": true}`

    **Responses:**
    - 200: event processed (including ignored event types and store failures
      that a redelivery could not fix)
    - 400: missing or invalid signature; nothing was written
    - 500: unexpected processing failure; Stripe will retry
    """
    payload = await request.body()
    signature = request.headers.get("Stripe-Signature")

    try:
        event = verify_webhook(
            payload,
            signature,
            settings.stripe_webhook_secret,
            tolerance=settings.webhook_tolerance_seconds,
        )
    except VerificationFailure as e:
        return JSONResponse(status_code=400, content={"error": f"Webhook Error: {e.message}"})

    outcome = await run_in_threadpool(dispatch_event, client, event)
    logger.info(
        "Connect webhook handled",
        extra={"event_id": event.id, "event_type": event.type, "action": outcome.action},
    )
    return WebhookAck(received=True)
