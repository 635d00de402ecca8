import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_doctor, get_current_user_obj, get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import (
    EmailAlreadyRegisteredError,
    EmailDeliveryError,
    InviteError,
    PatientLimitError,
    PermissionDeniedError,
    ProfileNotFoundError,
)
from app.db.models.user import UserProfile
from app.schemas.users import (
    CompleteRegistrationRequest,
    InviteRequest,
    InviteResponse,
    PatientCreateRequest,
    PatientCreateResponse,
    ProfileResponse,
)
from app.services.email_service import EmailService
from app.services.invite_service import send_patient_invite
from app.services.user_service import complete_registration, create_patient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_email_service(settings: Settings = Depends(get_settings)) -> EmailService:
    return EmailService(settings)


def _profile_response(user: UserProfile) -> ProfileResponse:
    return ProfileResponse(
        uid=user.uid,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        clinic_id=user.clinic_id,
        subscription=user.subscription,
    )


@router.get("/me", response_model=ProfileResponse)
def get_me(user: UserProfile = Depends(get_current_user_obj)):
    return _profile_response(user)


@router.post("/me/registration", response_model=ProfileResponse)
def complete_my_registration(
    body: CompleteRegistrationRequest,
    user: UserProfile = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    try:
        profile = complete_registration(db, user, body)
    except InviteError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except ProfileNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    return _profile_response(profile)


@router.post("/patients", response_model=PatientCreateResponse, status_code=201)
def create_patient_account(
    body: PatientCreateRequest,
    doctor: UserProfile = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    try:
        patient = create_patient(db, doctor, body)
    except (PermissionDeniedError, PatientLimitError) as e:
        raise HTTPException(status_code=403, detail=str(e))
    except EmailAlreadyRegisteredError:
        db.rollback()
        raise HTTPException(status_code=409, detail="This email is already in use by another account.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating patient for doctor {doctor.uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error while creating the patient.")

    return PatientCreateResponse(message=f"Patient {patient.display_name} created successfully.", uid=patient.uid)


@router.post("/invites", response_model=InviteResponse, status_code=201)
def invite_patient(
    body: InviteRequest,
    doctor: UserProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_service: EmailService = Depends(get_email_service),
):
    try:
        invite = send_patient_invite(db, doctor, body.email, email_service, settings)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="This email is already registered in the system.")
    except EmailDeliveryError:
        raise HTTPException(status_code=500, detail="Failed to send the invite email.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error sending invite from doctor {doctor.uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to send the invite.")

    return InviteResponse(message=f"Invite sent to {body.email}.", invite_id=invite.id)
