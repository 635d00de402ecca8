"""
Checkout and subscription initiation.

Gateway customers are created lazily, once per subscriber and gateway. The
definitive subscription status always arrives later through webhooks.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.subscription_status import SubscriptionStatus
from app.db.models.user import UserProfile
from app.services.asaas_service import AsaasClient
from app.services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


def find_or_create_asaas_customer(db: Session, profile: UserProfile, client: AsaasClient) -> str:
    """Return the subscriber's Asaas customer id, creating it on first use."""
    if profile.asaas_customer_id:
        logger.info(f"Asaas customer {profile.asaas_customer_id} already exists for user {profile.uid}")
        return profile.asaas_customer_id

    logger.info(f"Creating Asaas customer for user {profile.uid}")
    customer_id = client.create_customer(
        name=profile.display_name,
        email=profile.email,
        cpf_cnpj=profile.cpf,
        mobile_phone=profile.phone,
    )

    profile.asaas_customer_id = customer_id
    db.commit()
    logger.info(f"Asaas customer {customer_id} created and saved for user {profile.uid}")
    return customer_id


def get_or_create_stripe_customer(db: Session, profile: UserProfile, gateway: StripeGateway) -> str:
    """Return the subscriber's Stripe customer id, creating it on first use."""
    if profile.stripe_customer_id:
        return profile.stripe_customer_id

    customer_id = gateway.create_customer(uid=profile.uid, email=profile.email, name=profile.display_name)
    profile.stripe_customer_id = customer_id
    db.commit()
    return customer_id


def start_asaas_subscription(
    db: Session,
    profile: UserProfile,
    plan_id: str,
    client: AsaasClient,
    billing_type: str = "UNDEFINED",
) -> dict:
    """
    Create an Asaas subscription and mark the subscriber as pending.

    Returns:
        {"checkoutUrl": ...}
    """
    customer_id = find_or_create_asaas_customer(db, profile, client)
    subscription_id, checkout_url = client.create_subscription(customer_id, plan_id, billing_type=billing_type)

    profile.asaas_subscription_id = subscription_id
    profile.subscription_status = SubscriptionStatus.PENDING.value
    profile.subscription_plan = plan_id
    db.commit()

    logger.info(f"User {profile.uid} subscribed to plan {plan_id} (asaas_subscription_id={subscription_id}), status pending")
    return {"checkoutUrl": checkout_url}


def start_stripe_checkout(
    db: Session,
    profile: UserProfile,
    price_id: str,
    gateway: StripeGateway,
    settings: Settings,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> dict:
    """
    Create a Stripe checkout session for a subscription.

    The local status is left alone here: Stripe reports the new subscription
    as `incomplete` right away, which reconciliation records as pending.

    Returns:
        {"sessionId": ..., "checkoutUrl": ...}
    """
    if not success_url:
        success_url = f"{settings.frontend_url}/dashboard/success"
    if not cancel_url:
        cancel_url = f"{settings.frontend_url}/profile"

    customer_id = get_or_create_stripe_customer(db, profile, gateway)
    session = gateway.create_checkout_session(customer_id, price_id, success_url, cancel_url)

    logger.info(f"Stripe checkout started for user {profile.uid}: session_id={session.id}, price_id={price_id}")
    return {"sessionId": session.id, "checkoutUrl": getattr(session, "url", None)}
