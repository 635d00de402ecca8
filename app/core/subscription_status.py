"""
Internal subscription status and the gateway vocabularies that map onto it.

Each gateway reports subscription state in its own words. Only values listed
in a gateway's table are ever translated; anything else maps to None, which
callers treat as "leave the stored status unchanged".
"""
import enum
from typing import Dict, Optional


class SubscriptionStatus(str, enum.Enum):
    FREE = "free"
    PENDING = "pending"
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


# Statuses that allow a doctor to keep adding patients up to their limit
ENTITLED_STATUSES = frozenset({
    SubscriptionStatus.FREE,
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
})


ASAAS_STATUS_MAP: Dict[str, SubscriptionStatus] = {
    "ACTIVE": SubscriptionStatus.ACTIVE,
    "CONFIRMED": SubscriptionStatus.ACTIVE,  # payment confirmed
    "INACTIVE": SubscriptionStatus.CANCELED,
    "CANCELLED": SubscriptionStatus.CANCELED,
    "EXPIRED": SubscriptionStatus.CANCELED,  # cycle ended without renewal
    "OVERDUE": SubscriptionStatus.PAST_DUE,
    "PENDING": SubscriptionStatus.PENDING,  # e.g. boleto issued, not paid yet
}

STRIPE_STATUS_MAP: Dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "paused": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "incomplete": SubscriptionStatus.PENDING,
}


def map_asaas_status(native_status: Optional[str]) -> Optional[SubscriptionStatus]:
    """Translate an Asaas subscription/payment status, or None if unknown."""
    if not native_status:
        return None
    return ASAAS_STATUS_MAP.get(native_status)


def map_stripe_status(native_status: Optional[str]) -> Optional[SubscriptionStatus]:
    """Translate a Stripe subscription status, or None if unknown."""
    if not native_status:
        return None
    return STRIPE_STATUS_MAP.get(native_status)


def is_entitled(status: Optional[str]) -> bool:
    try:
        return SubscriptionStatus(status) in ENTITLED_STATUSES
    except ValueError:
        return False
