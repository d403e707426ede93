"""
API Request and Response Models.

Pydantic models for serializing responses of the seller backend endpoints.
"""

from pydantic import BaseModel

from domain.seller_balance import SellerBalance


# ============================================================================
# Webhook Models
# ============================================================================

class WebhookAck(BaseModel):
    """Acknowledgement returned to Stripe once an event has been dispatched."""
    received: bool = True

    class Config:
        json_schema_extra = {"example": {"received": True}}


# ============================================================================
# Balance Models
# ============================================================================

class SellerBalanceResponse(BaseModel):
    """Seller balance as shown in the wallet screen."""
    has_account: bool
    available_balance_cents: int
    pending_balance_cents: int
    payouts_enabled: bool
    details_submitted: bool
    needs_onboarding: bool
    currency: str

    class Config:
        json_schema_extra = {
            "example": {
                "has_account": True,
                "available_balance_cents": 500,
                "pending_balance_cents": 0,
                "payouts_enabled": True,
                "details_submitted": True,
                "needs_onboarding": False,
                "currency": "usd"
            }
        }

    @classmethod
    def from_domain(cls, balance: SellerBalance) -> "SellerBalanceResponse":
        return cls(
            has_account=balance.has_account,
            available_balance_cents=balance.available_balance_cents,
            pending_balance_cents=balance.pending_balance_cents,
            payouts_enabled=balance.payouts_enabled,
            details_submitted=balance.details_submitted,
            needs_onboarding=balance.needs_onboarding,
            currency=balance.currency,
        )


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid authentication"
            }
        }
