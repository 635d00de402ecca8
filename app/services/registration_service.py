"""
Account onboarding driven by the n8n automation.

The automation first stages a signup keyed by phone number, then asks for
the account to be created. The new user receives a temporary password by
email.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.exceptions import EmailDeliveryError, ProfileNotFoundError
from app.core.security import generate_temporary_password
from app.db.models.signup_status import SignupStatus
from app.db.models.user import UserProfile
from app.schemas.integrations import StagedSignupRequest
from app.services.email_service import EmailService
from app.services.user_service import initialize_profile

logger = logging.getLogger(__name__)


@dataclass
class ProvisionedUser:
    profile: UserProfile
    email_sent: bool


def normalize_phone(phone_number: str) -> str:
    return phone_number[1:] if phone_number.startswith("+") else phone_number


def stage_signup(db: Session, data: StagedSignupRequest) -> SignupStatus:
    """Create or replace the staging record for a phone number."""
    phone = normalize_phone(data.phone_number)

    staged = db.query(SignupStatus).filter(SignupStatus.phone_number == phone).first()
    if staged is None:
        staged = SignupStatus(phone_number=phone)
        db.add(staged)

    staged.clinic_id = data.clinic_id
    staged.email = data.email
    staged.name = data.name
    staged.cpf = data.cpf
    db.commit()

    logger.info(f"Signup staged for phone {phone} (clinic={data.clinic_id})")
    return staged


def create_user_from_staging(db: Session, phone_number: str, email_service: EmailService) -> ProvisionedUser:
    """
    Create the account described by a staged signup.

    A failed password email is logged; the account is kept.

    Raises:
        ProfileNotFoundError: No staged signup for this phone
        ValueError: Staged record is missing email, name or clinic
        EmailAlreadyRegisteredError: Email already in use
    """
    phone = normalize_phone(phone_number)
    staged = db.query(SignupStatus).filter(SignupStatus.phone_number == phone).first()
    if staged is None:
        logger.error(f"Signup record not found for phone: {phone}")
        raise ProfileNotFoundError(f"No staged signup for {phone}")

    if not staged.email or not staged.name or not staged.clinic_id:
        logger.error(f"Incomplete signup data for phone {phone}")
        raise ValueError("Essential signup data is missing.")

    temporary_password = generate_temporary_password()
    profile = initialize_profile(
        db,
        email=staged.email,
        password=temporary_password,
        display_name=staged.name,
        role="user",
        clinic_id=staged.clinic_id,
        phone=phone_number,
        cpf=str(staged.cpf) if staged.cpf else None,
    )
    logger.info(f"User {profile.uid} created from staged signup {phone}")

    try:
        email_service.send_temporary_password(profile.email, profile.display_name, temporary_password)
        email_sent = True
    except EmailDeliveryError as e:
        logger.error(f"Failed to send temporary password email to {profile.email}: {e}")
        email_sent = False

    return ProvisionedUser(profile=profile, email_sent=email_sent)
