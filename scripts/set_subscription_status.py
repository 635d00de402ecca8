"""
Set a subscriber's subscription status by hand.

Used to follow up on reconciliation integrity errors logged by the webhook
handlers (duplicate or orphaned gateway subscriptions).

Run: python -m scripts.set_subscription_status <email> <status> [plan] [patient_limit]
"""
import logging
import sys

from app.core.subscription_status import SubscriptionStatus
from app.db.session import SessionLocal
from app.services.billing_service import apply_subscription_update
from app.services.user_service import find_profile_by_email

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_subscription_status(email: str, status: str, plan: str = None, patient_limit: int = None) -> bool:
    """Write the given status (and optionally plan and limit) to the subscriber."""
    try:
        new_status = SubscriptionStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in SubscriptionStatus)
        logger.error(f"Invalid status '{status}'. Allowed: {allowed}")
        return False

    db = SessionLocal()
    try:
        profile = find_profile_by_email(db, email)
        if profile is None:
            logger.error(f"User {email} not found")
            return False

        changed = apply_subscription_update(
            db,
            profile,
            status=new_status,
            plan=plan,
            patient_limit=patient_limit,
        )
        if changed:
            logger.info(f"User {email} is now {profile.subscription}")
        else:
            logger.info(f"User {email} already had {profile.subscription}; nothing written")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user {email}: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)

    limit = int(sys.argv[4]) if len(sys.argv) > 4 else None
    plan_arg = sys.argv[3] if len(sys.argv) > 3 else None

    if not set_subscription_status(sys.argv[1], sys.argv[2], plan_arg, limit):
        print(f"\n[ERROR] Failed to update {sys.argv[1]}")
        sys.exit(1)
    print(f"\n[SUCCESS] Subscription of {sys.argv[1]} updated")
