"""
Tickety Seller Backend API - Main Application.

FastAPI application serving the Stripe Connect webhook and the seller balance
endpoint, with CORS enabled for the mobile client.

Run with:
    uvicorn api.main:create_app --factory
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from supabase import Client  # type: ignore[import-not-found]

from adapters.stripe_adapter import StripeAdapter
from api import __version__
from api.routers import balance, webhooks
from config.settings import Settings, load_settings
from domain.errors import NotFound, TicketyError, Unauthenticated, Unavailable, VerificationFailure
from repositories.client import create_supabase_client

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (VerificationFailure, 400),
    (Unauthenticated, 401),
    (NotFound, 404),
    (Unavailable, 500),
)


def _status_for(error: TicketyError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 400


async def _tickety_error_handler(request: Request, exc: TicketyError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_code": exc.error_code, "details": exc.details},
        )
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=balance.CORS_HEADERS)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Full detail stays in the log; the caller gets a generic message.
    logger.error(
        f"Unhandled error: {type(exc).__name__}",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"}, headers=balance.CORS_HEADERS)


def create_app(
    settings: Optional[Settings] = None,
    supabase_client: Optional[Client] = None,
    stripe_adapter: Optional[StripeAdapter] = None,
) -> FastAPI:
    """
    Build the application.

    Anything not passed in is created from the environment; tests pass fakes.
    """
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Tickety Seller Backend API",
        description="Stripe Connect reconciliation and seller balance endpoints",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.supabase = supabase_client or create_supabase_client(settings)
    app.state.stripe_adapter = stripe_adapter or StripeAdapter(
        api_key=settings.stripe_secret_key,
        timeout_seconds=settings.stripe_api_timeout_seconds,
        max_retries=settings.stripe_max_retries,
    )

    # The mobile client and the Supabase dashboard call from any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TicketyError, _tickety_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "tickety-seller-backend"
        }

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "Tickety Seller Backend API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health"
        }

    app.include_router(webhooks.router, tags=["Webhooks"])
    app.include_router(balance.router, tags=["Balance"])

    return app
