"""
Pydantic schemas for billing endpoints.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class AsaasSubscriptionRequest(BaseModel):
    """Request schema for starting an Asaas subscription."""
    plan_id: str = Field(..., alias="planId", min_length=1, description="Asaas plan identifier")
    billing_type: Literal["CREDIT_CARD", "BOLETO", "PIX", "UNDEFINED"] = Field(
        default="UNDEFINED", alias="billingType", description="Asaas billing type"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "planId": "plano_pro",
                "billingType": "UNDEFINED"
            }
        }


class AsaasSubscriptionResponse(BaseModel):
    checkout_url: Optional[str] = Field(None, alias="checkoutUrl", description="Asaas payment page")

    class Config:
        populate_by_name = True


class StripeCheckoutRequest(BaseModel):
    """Request schema for creating a Stripe checkout session."""
    plan_id: str = Field(..., alias="planId", min_length=1, description="Stripe price ID")
    success_url: Optional[str] = Field(None, alias="successUrl", description="URL to redirect after successful payment")
    cancel_url: Optional[str] = Field(None, alias="cancelUrl", description="URL to redirect if payment is canceled")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "planId": "price_123_plano_pro",
                "successUrl": "https://urotrack.app/dashboard/success",
                "cancelUrl": "https://urotrack.app/profile"
            }
        }


class StripeCheckoutResponse(BaseModel):
    session_id: str = Field(..., alias="sessionId", description="Stripe checkout session ID")
    checkout_url: Optional[str] = Field(None, alias="checkoutUrl", description="Stripe checkout session URL")

    class Config:
        populate_by_name = True


class SubscriptionResponse(BaseModel):
    """Current subscription of the caller."""
    status: str
    plan: str
    patient_limit: int = Field(..., alias="patientLimit")

    class Config:
        populate_by_name = True
