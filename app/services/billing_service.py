"""
Subscription reconciliation for Stripe and Asaas webhooks.

Every gateway event ends in at most one write to one subscriber profile.
Writes are absolute assignments and are skipped entirely when nothing
changes, so replayed events leave no trace. Events are applied in arrival
order: there is no timestamp check, the last processed event wins.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import WebhookIntegrityError
from app.core.plan_limits import get_patient_limit
from app.core.subscription_status import SubscriptionStatus, map_asaas_status, map_stripe_status
from app.db.models.user import UserProfile
from app.schemas.webhooks import AsaasWebhookEvent, StripeEvent
from app.services.stripe_service import StripeGateway, get_customer_uid

logger = logging.getLogger(__name__)

UPDATED = "updated"
UNCHANGED = "unchanged"
IGNORED = "ignored"
NOT_FOUND = "not_found"
UNKNOWN_STATUS = "unknown_status"


@dataclass
class ReconciliationResult:
    outcome: str
    uid: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None


def apply_subscription_update(
    db: Session,
    profile: UserProfile,
    status: Optional[SubscriptionStatus] = None,
    plan: Optional[str] = None,
    patient_limit: Optional[int] = None,
    stripe_subscription_id: Optional[str] = None,
) -> bool:
    """
    Write the given subscription fields if any of them differ from what is stored.

    None means "leave as is". Returns True when a write happened.
    """
    wanted: Dict[str, object] = {
        "subscription_status": status.value if status is not None else None,
        "subscription_plan": plan,
        "patient_limit": patient_limit,
        "stripe_subscription_id": stripe_subscription_id,
    }
    changes = {
        field: value
        for field, value in wanted.items()
        if value is not None and getattr(profile, field) != value
    }

    if not changes:
        return False

    for field, value in changes.items():
        setattr(profile, field, value)
    db.commit()
    return True


def find_profile_by_asaas_subscription(db: Session, asaas_subscription_id: str) -> Optional[UserProfile]:
    """
    Look up the subscriber owning an Asaas subscription.

    A subscription id should belong to one profile. If several match, the
    first one wins and the duplicate is logged for manual follow-up.
    """
    matches = (
        db.query(UserProfile)
        .filter(UserProfile.asaas_subscription_id == asaas_subscription_id)
        .order_by(UserProfile.created_at, UserProfile.uid)
        .limit(2)
        .all()
    )
    if not matches:
        return None
    if len(matches) > 1:
        logger.error(
            f"Integrity error: Asaas subscription {asaas_subscription_id} is linked to more than one user "
            f"({', '.join(p.uid for p in matches)}); updating {matches[0].uid} only"
        )
    return matches[0]


def reconcile_asaas_event(db: Session, event: AsaasWebhookEvent) -> ReconciliationResult:
    """
    Apply an Asaas event to the subscriber owning its subscription.

    Unknown subscriptions and unknown statuses are logged and skipped; both
    are acknowledged to Asaas since retrying cannot fix them.
    """
    subscription_id = event.subscription.id
    native_status = event.subscription.status
    logger.info(f"Looking up user for Asaas subscription {subscription_id}")

    profile = find_profile_by_asaas_subscription(db, subscription_id)
    if profile is None:
        logger.warning(f"No user found for Asaas subscription {subscription_id} (event={event.event})")
        return ReconciliationResult(outcome=NOT_FOUND)

    previous = profile.subscription_status
    new_status = map_asaas_status(native_status)
    if new_status is None:
        logger.warning(
            f"Unknown Asaas status '{native_status}' for subscription {subscription_id}; "
            f"keeping '{previous}' for user {profile.uid}"
        )
        return ReconciliationResult(outcome=UNKNOWN_STATUS, uid=profile.uid, previous_status=previous, new_status=previous)

    if not apply_subscription_update(db, profile, status=new_status):
        logger.info(f"User {profile.uid} already has status '{previous}'. No update needed.")
        return ReconciliationResult(outcome=UNCHANGED, uid=profile.uid, previous_status=previous, new_status=previous)

    logger.info(f"Updated user {profile.uid} subscription status from '{previous}' to '{new_status.value}'")
    return ReconciliationResult(outcome=UPDATED, uid=profile.uid, previous_status=previous, new_status=new_status.value)


def reconcile_stripe_event(
    db: Session,
    event: StripeEvent,
    gateway: StripeGateway,
    price_tiers: Dict[str, int],
) -> ReconciliationResult:
    """
    Apply a verified Stripe subscription lifecycle event.

    The subscriber is identified through the uid stored in the Stripe
    customer's metadata when the customer was created.

    Raises:
        WebhookIntegrityError: The Stripe customer carries no user uid
        PaymentGatewayError: The customer could not be fetched from Stripe
    """
    if not event.is_subscription_event:
        logger.info(f"Ignoring Stripe event type {event.type}")
        return ReconciliationResult(outcome=IGNORED)

    subscription = event.subscription()
    customer = gateway.retrieve_customer(subscription.customer)
    uid = get_customer_uid(customer)
    if not uid:
        raise WebhookIntegrityError(f"User uid not found in Stripe customer metadata: {subscription.customer}")

    profile = db.query(UserProfile).filter(UserProfile.uid == uid).first()
    if profile is None:
        logger.error(
            f"Integrity error: Stripe customer {subscription.customer} points to unknown user {uid} "
            f"(subscription={subscription.id}, event={event.type})"
        )
        return ReconciliationResult(outcome=NOT_FOUND, uid=uid)

    previous = profile.subscription_status
    new_status = map_stripe_status(subscription.status)
    if new_status is None:
        logger.warning(
            f"Unknown Stripe status '{subscription.status}' for subscription {subscription.id}; "
            f"keeping '{previous}' for user {uid}"
        )

    plan_id = subscription.price_id
    changed = apply_subscription_update(
        db,
        profile,
        status=new_status,
        plan=plan_id,
        patient_limit=get_patient_limit(plan_id, price_tiers) if plan_id else None,
        stripe_subscription_id=subscription.id,
    )
    current = profile.subscription_status

    if not changed:
        logger.info(f"Stripe event {event.id} changes nothing for user {uid} (status '{current}')")
        return ReconciliationResult(outcome=UNCHANGED, uid=uid, previous_status=previous, new_status=current)

    logger.info(f"Subscription updated for user {uid}: status '{previous}' -> '{current}', plan={plan_id}")
    return ReconciliationResult(outcome=UPDATED, uid=uid, previous_status=previous, new_status=current)
