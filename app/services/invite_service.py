"""
Patient invitations sent by doctors.
"""
import logging

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import EmailAlreadyRegisteredError, PermissionDeniedError
from app.db.models.patient_invite import PatientInvite
from app.db.models.user import UserProfile
from app.services.email_service import EmailService
from app.services.user_service import find_profile_by_email

logger = logging.getLogger(__name__)


def build_registration_url(settings: Settings, invite: PatientInvite) -> str:
    return f"{settings.frontend_url}/signup?invite={invite.id}&clinic={invite.clinic_id}"


def send_patient_invite(
    db: Session,
    doctor: UserProfile,
    email: str,
    email_service: EmailService,
    settings: Settings,
) -> PatientInvite:
    """
    Invite a patient by email to register in the doctor's clinic.

    The invite is only persisted once the email went out.

    Raises:
        PermissionDeniedError: Requester is not a doctor with a clinic
        EmailAlreadyRegisteredError: Email already belongs to an account
        EmailDeliveryError: The email could not be sent
    """
    if doctor.role != "doctor":
        raise PermissionDeniedError("Only doctors can send invites.")
    if not doctor.clinic_id:
        raise PermissionDeniedError("Requester is not associated with any clinic.")

    email = email.lower()
    if find_profile_by_email(db, email) is not None:
        raise EmailAlreadyRegisteredError(email)

    invite = PatientInvite(
        email_to_invite=email,
        clinic_id=doctor.clinic_id,
        invited_by_uid=doctor.uid,
        status="pending",
        expires_at=PatientInvite.default_expiry(),
    )
    db.add(invite)
    db.flush()

    try:
        email_service.send_patient_invite(email, doctor.display_name, build_registration_url(settings, invite))
    except Exception:
        db.rollback()
        raise

    db.commit()
    db.refresh(invite)
    logger.info(f"Invite {invite.id} sent to {email} for clinic {invite.clinic_id}")
    return invite
