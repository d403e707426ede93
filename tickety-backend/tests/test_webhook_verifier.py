"""
Tests for `services/webhook_verifier.py`.

Signatures are computed for real with the endpoint secret; nothing about
Stripe is mocked.
"""

from __future__ import annotations

import time

import pytest

from domain.connect_event import ConnectEventType
from domain.errors import VerificationFailure
from fakes import account_event, sign_payload
from services.webhook_verifier import verify_webhook

SECRET = "whsec_test_secret"


def test_valid_signature_yields_event() -> None:
    body = account_event(event_id="evt_42")

    event = verify_webhook(body.encode("utf-8"), sign_payload(body, SECRET), SECRET)

    assert event.id == "evt_42"
    assert event.kind is ConnectEventType.ACCOUNT_UPDATED
    assert event.account == "acct_123"
    assert event.data_object["metadata"] == {"supabase_user_id": "user-1"}


@pytest.mark.parametrize("signature", [None, ""])
def test_missing_signature_is_rejected(signature) -> None:
    body = account_event()

    with pytest.raises(VerificationFailure) as exc_info:
        verify_webhook(body.encode("utf-8"), signature, SECRET)

    assert exc_info.value.message == "Missing stripe-signature header"


def test_wrong_secret_is_rejected() -> None:
    body = account_event()

    with pytest.raises(VerificationFailure) as exc_info:
        verify_webhook(body.encode("utf-8"), sign_payload(body, "whsec_other"), SECRET)

    assert exc_info.value.message == "Invalid signature"


def test_modified_body_is_rejected() -> None:
    body = account_event(payouts_enabled=False)
    signature = sign_payload(body, SECRET)
    tampered = body.replace('"payouts_enabled": false', '"payouts_enabled": true')

    with pytest.raises(VerificationFailure):
        verify_webhook(tampered.encode("utf-8"), signature, SECRET)


def test_stale_timestamp_is_rejected() -> None:
    body = account_event()
    signature = sign_payload(body, SECRET, timestamp=int(time.time()) - 3600)

    with pytest.raises(VerificationFailure):
        verify_webhook(body.encode("utf-8"), signature, SECRET, tolerance=300)


def test_garbage_signature_header_is_rejected() -> None:
    body = account_event()

    with pytest.raises(VerificationFailure):
        verify_webhook(body.encode("utf-8"), "not-a-signature", SECRET)


def test_signed_payload_without_event_id_is_invalid() -> None:
    body = '{"type": "account.updated", "data": {"object": {}}}'

    with pytest.raises(VerificationFailure) as exc_info:
        verify_webhook(body.encode("utf-8"), sign_payload(body, SECRET), SECRET)

    assert exc_info.value.message == "Invalid payload"


def test_non_utf8_body_is_invalid() -> None:
    with pytest.raises(VerificationFailure) as exc_info:
        verify_webhook(b"\xff\xfe\x00", "t=1,v1=abc", SECRET)

    assert exc_info.value.message == "Invalid payload"


def test_unhandled_event_type_still_verifies() -> None:
    body = account_event(event_type="payout.paid")

    event = verify_webhook(body.encode("utf-8"), sign_payload(body, SECRET), SECRET)

    assert event.type == "payout.paid"
    assert event.kind is None
