"""
User provisioning: profiles, clinics, patients and registration completion.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import (
    EmailAlreadyRegisteredError,
    InviteError,
    PatientLimitError,
    PermissionDeniedError,
    ProfileNotFoundError,
)
from app.core.plan_limits import DEFAULT_PATIENT_LIMIT, FREE_PLAN
from app.core.security import hash_password
from app.core.subscription_status import SubscriptionStatus, is_entitled
from app.db.models.clinic import Clinic
from app.db.models.patient_invite import PatientInvite
from app.db.models.user import UserProfile
from app.schemas.users import CompleteRegistrationRequest, PatientCreateRequest

logger = logging.getLogger(__name__)


def get_profile(db: Session, uid: str) -> Optional[UserProfile]:
    return db.query(UserProfile).filter(UserProfile.uid == uid).first()


def find_profile_by_email(db: Session, email: str) -> Optional[UserProfile]:
    """Look up a profile by email. A missing profile is a normal result."""
    return db.query(UserProfile).filter(UserProfile.email == email.lower()).first()


def initialize_profile(
    db: Session,
    email: str,
    password: str,
    display_name: Optional[str] = None,
    role: str = "user",
    clinic_id: Optional[str] = None,
    commit: bool = True,
    **details,
) -> UserProfile:
    """
    Create an identity with its profile and the default free subscription.

    Raises:
        EmailAlreadyRegisteredError: If the email is taken
    """
    email = email.lower()
    if find_profile_by_email(db, email) is not None:
        raise EmailAlreadyRegisteredError(email)

    profile = UserProfile(
        email=email,
        display_name=display_name or email.split("@")[0],
        password_hash=hash_password(password),
        role=role,
        clinic_id=clinic_id,
        subscription_status=SubscriptionStatus.FREE.value,
        subscription_plan=FREE_PLAN,
        patient_limit=DEFAULT_PATIENT_LIMIT,
        **details,
    )
    db.add(profile)
    if commit:
        db.commit()
        db.refresh(profile)
    else:
        db.flush()

    logger.info(f"Profile initialized for new user: {profile.uid}")
    return profile


def register_clinic(db: Session, owner: UserProfile, cnpj: str, name: str, logo_url: Optional[str] = None) -> Clinic:
    """
    Create a clinic owned by `owner` and grant them doctor claims on it.

    Raises:
        ValueError: If a clinic with this CNPJ already exists
    """
    if db.query(Clinic).filter(Clinic.id == cnpj).first() is not None:
        raise ValueError(f"Clinic {cnpj} already exists")

    clinic = Clinic(id=cnpj, name=name, owner_id=owner.uid, logo_url=logo_url)
    db.add(clinic)
    db.flush()
    set_doctor_claims(owner, clinic.id)
    db.commit()
    db.refresh(clinic)

    logger.info(f"Clinic {clinic.id} created by user {owner.uid}; doctor claims granted")
    return clinic


def set_doctor_claims(profile: UserProfile, clinic_id: str) -> None:
    profile.role = "doctor"
    profile.clinic_id = clinic_id


def count_patients(db: Session, clinic_id: str) -> int:
    return (
        db.query(UserProfile)
        .filter(UserProfile.clinic_id == clinic_id, UserProfile.role == "user")
        .count()
    )


def check_patient_limit(db: Session, doctor: UserProfile) -> None:
    """
    Ensure the doctor may add one more patient.

    Raises:
        PatientLimitError: Subscription not in good standing or limit reached
    """
    if not is_entitled(doctor.subscription_status):
        raise PatientLimitError("Your subscription is not active. Please update your plan.")

    patient_count = count_patients(db, doctor.clinic_id)
    if patient_count >= doctor.patient_limit:
        raise PatientLimitError(f"You have reached your limit of {doctor.patient_limit} patients.")


def create_patient(db: Session, doctor: UserProfile, data: PatientCreateRequest) -> UserProfile:
    """
    Create a patient account inside the doctor's clinic.

    Raises:
        PermissionDeniedError: Requester is not a doctor with a clinic
        PatientLimitError: Doctor cannot add more patients
        EmailAlreadyRegisteredError: Email already in use
    """
    if doctor.role != "doctor" or not doctor.clinic_id:
        logger.error(f"User {doctor.uid} tried to create a patient without permission")
        raise PermissionDeniedError("Only doctors can create patient accounts.")

    check_patient_limit(db, doctor)

    patient = initialize_profile(
        db,
        email=data.email,
        password=data.password,
        display_name=data.display_name,
        role="user",
        clinic_id=doctor.clinic_id,
        cpf=data.cpf,
        phone=data.phone,
        birth_date=data.birth_date,
        gender=data.gender,
        address=data.address.model_dump(by_alias=True) if data.address else {},
    )

    logger.info(f"Patient {patient.uid} created by doctor {doctor.uid}")
    return patient


def complete_registration(db: Session, profile: UserProfile, data: CompleteRegistrationRequest) -> UserProfile:
    """
    Store the personal data a user fills in after signing up.

    When an invite id is given, the invite must be pending, unexpired and
    addressed to this user; its clinic becomes the user's clinic.

    Raises:
        InviteError: Invite missing, used, expired or addressed to someone else
        ProfileNotFoundError: Referenced clinic does not exist
    """
    clinic_id = data.clinic_id

    if data.invite_id:
        invite = db.query(PatientInvite).filter(PatientInvite.id == data.invite_id).first()
        if invite is None or invite.status != "pending":
            raise InviteError("Invite not found or already used.")
        if invite.email_to_invite.lower() != profile.email.lower():
            raise InviteError("Invite was sent to a different email.")
        if invite.is_expired(datetime.utcnow()):
            invite.status = "expired"
            db.commit()
            raise InviteError("Invite has expired.")
        invite.status = "accepted"
        clinic_id = invite.clinic_id

    if clinic_id and db.query(Clinic).filter(Clinic.id == clinic_id).first() is None:
        raise ProfileNotFoundError(f"Clinic {clinic_id} not found")

    for field in ("cpf", "phone", "birth_date", "gender"):
        value = getattr(data, field)
        if value is not None:
            setattr(profile, field, value)
    if data.address is not None:
        profile.address = data.address.model_dump(by_alias=True)
    if clinic_id and profile.role != "doctor":
        profile.clinic_id = clinic_id

    db.commit()
    db.refresh(profile)
    logger.info(f"Registration completed for user {profile.uid} (clinic={profile.clinic_id})")
    return profile
