"""
Tests for `services/auth_service.py`.
"""

from __future__ import annotations

import pytest

from domain.errors import Unauthenticated
from fakes import FakeSupabase, FakeUser
from services.auth_service import resolve_caller


def test_bearer_token_resolves_to_user(supabase: FakeSupabase) -> None:
    supabase.auth.tokens["good-token"] = FakeUser(id="user-1", email="seller@example.com")

    caller = resolve_caller(supabase, "Bearer good-token")

    assert caller.user_id == "user-1"
    assert caller.email == "seller@example.com"


@pytest.mark.parametrize("header", [None, ""])
def test_missing_header(supabase: FakeSupabase, header) -> None:
    with pytest.raises(Unauthenticated) as exc_info:
        resolve_caller(supabase, header)

    assert exc_info.value.message == "Missing authorization header"


@pytest.mark.parametrize("header", ["Bearer unknown-token", "Bearer expired", "Bearer   "])
def test_rejected_token(supabase: FakeSupabase, header: str) -> None:
    with pytest.raises(Unauthenticated) as exc_info:
        resolve_caller(supabase, header)

    assert exc_info.value.message == "Invalid authentication"
