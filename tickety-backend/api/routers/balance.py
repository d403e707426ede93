"""
Seller Balance API Endpoints.

Endpoint the mobile wallet screen calls to show a seller's Stripe balance.
"""

from fastapi import APIRouter, Depends, Response
from supabase import Client  # type: ignore[import-not-found]

from adapters.stripe_adapter import StripeAdapter
from api.dependencies import get_caller, get_settings, get_stripe_adapter, get_supabase
from api.models import ErrorResponse, SellerBalanceResponse
from config.settings import Settings
from domain.caller import AuthenticatedUser
from services.balance_sync_service import get_seller_balance

# Permissive CORS headers sent on every balance response, including preflight.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

router = APIRouter()


@router.options("/seller-balance", include_in_schema=False)
def seller_balance_preflight() -> Response:
    """CORS preflight: headers only, no body."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.api_route(
    "/seller-balance",
    methods=["GET", "POST"],
    response_model=SellerBalanceResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Get Seller Balance",
    description="Fetch the caller's Stripe Connect balance and refresh the cached copy."
)
def seller_balance(
    response: Response,
    caller: AuthenticatedUser = Depends(get_caller),
    client: Client = Depends(get_supabase),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
    settings: Settings = Depends(get_settings),
):
    """
    Return the caller's seller balance.

    Requires `Authorization: Bearer <access token>`.

    **No seller account yet:**
    ```json
    {
      "has_account": false,
      "available_balance_cents": 0,
      "pending_balance_cents": 0,
      "payouts_enabled": false,
      "details_submitted": false,
      "needs_onboarding": true,
      "currency": "usd"
    }
    ```

    **With an account**, figures come straight from Stripe; `needs_onboarding`
    is true until payouts are enabled.
    """
    response.headers.update(CORS_HEADERS)

    balance = get_seller_balance(
        client,
        stripe_adapter,
        caller,
        default_currency=settings.default_currency,
        fetch_timeout_seconds=settings.balance_fetch_timeout_seconds,
    )
    return SellerBalanceResponse.from_domain(balance)
