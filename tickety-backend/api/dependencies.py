"""
FastAPI dependencies.

The Supabase client, the Stripe adapter and the settings are built once by
`create_app()` and kept on `app.state`; endpoints receive them through these
functions.
"""

from typing import Optional

from fastapi import Header, Request
from supabase import Client  # type: ignore[import-not-found]

from adapters.stripe_adapter import StripeAdapter
from config.settings import Settings
from domain.caller import AuthenticatedUser
from services.auth_service import resolve_caller


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_supabase(request: Request) -> Client:
    return request.app.state.supabase


def get_stripe_adapter(request: Request) -> StripeAdapter:
    return request.app.state.stripe_adapter


def get_caller(request: Request, authorization: Optional[str] = Header(None)) -> AuthenticatedUser:
    """Resolve the bearer token; raises Unauthenticated (401) on failure."""
    return resolve_caller(get_supabase(request), authorization)
