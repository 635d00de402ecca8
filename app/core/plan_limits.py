"""
Plan-based patient limits.

Single source of truth for how many patients a subscriber may own per plan.
"""
from typing import Dict, Optional

from app.core.config import Settings

FREE_PLAN = "free"

# Patient cap for the free tier and for any plan id we do not recognize
DEFAULT_PATIENT_LIMIT = 5

PRO_PATIENT_LIMIT = 50
ENTERPRISE_PATIENT_LIMIT = 500


def build_stripe_price_tiers(settings: Settings) -> Dict[str, int]:
    """Map configured Stripe price ids to their patient limits."""
    tiers: Dict[str, int] = {}

    if settings.stripe_price_id_pro:
        tiers[settings.stripe_price_id_pro] = PRO_PATIENT_LIMIT

    if settings.stripe_price_id_enterprise:
        tiers[settings.stripe_price_id_enterprise] = ENTERPRISE_PATIENT_LIMIT

    return tiers


def get_patient_limit(plan_id: Optional[str], tiers: Dict[str, int]) -> int:
    """
    Get the patient limit for a plan id.

    Args:
        plan_id: Gateway plan/price identifier
        tiers: Mapping from plan id to patient limit

    Returns:
        The tier's limit, or DEFAULT_PATIENT_LIMIT when the plan is unknown
    """
    if not plan_id:
        return DEFAULT_PATIENT_LIMIT
    return tiers.get(plan_id, DEFAULT_PATIENT_LIMIT)
