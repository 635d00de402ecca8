import logging
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj, get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import PaymentGatewayError
from app.db.models.user import UserProfile
from app.schemas.billing import (
    AsaasSubscriptionRequest,
    AsaasSubscriptionResponse,
    StripeCheckoutRequest,
    StripeCheckoutResponse,
    SubscriptionResponse,
)
from app.services.asaas_service import AsaasClient
from app.services.checkout_service import start_asaas_subscription, start_stripe_checkout
from app.services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])

CHECKOUT_FAILED = "Could not process the subscription. Please try again later."


def get_asaas_client(settings: Settings = Depends(get_settings)) -> Iterator[AsaasClient]:
    with AsaasClient(settings) as client:
        yield client


def get_stripe_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings)


@router.get("/subscription", response_model=SubscriptionResponse)
def current_subscription(user: UserProfile = Depends(get_current_user_obj)):
    return SubscriptionResponse(**user.subscription)


@router.post("/asaas/subscription", response_model=AsaasSubscriptionResponse)
def create_asaas_subscription(
    body: AsaasSubscriptionRequest,
    user: UserProfile = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
    client: AsaasClient = Depends(get_asaas_client),
):
    try:
        result = start_asaas_subscription(db, user, body.plan_id, client, billing_type=body.billing_type)
    except PaymentGatewayError as e:
        db.rollback()
        logger.error(f"Asaas subscription failed for user {user.uid}: {e} (detail={e.detail})")
        raise HTTPException(status_code=500, detail=CHECKOUT_FAILED)
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating Asaas subscription for user {user.uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=CHECKOUT_FAILED)

    return AsaasSubscriptionResponse(**result)


@router.post("/stripe/checkout", response_model=StripeCheckoutResponse)
def create_stripe_checkout(
    body: StripeCheckoutRequest,
    user: UserProfile = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    try:
        result = start_stripe_checkout(
            db,
            user,
            body.plan_id,
            gateway,
            settings,
            success_url=body.success_url,
            cancel_url=body.cancel_url,
        )
    except PaymentGatewayError as e:
        db.rollback()
        logger.error(f"Stripe checkout failed for user {user.uid}: {e} (detail={e.detail})")
        raise HTTPException(status_code=500, detail=CHECKOUT_FAILED)
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating Stripe checkout for user {user.uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=CHECKOUT_FAILED)

    return StripeCheckoutResponse(**result)
