import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj, get_db
from app.db.models.user import UserProfile
from app.schemas.users import ClinicCreateRequest, ClinicResponse
from app.services.user_service import register_clinic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics", tags=["Clinics"])


@router.post("", response_model=ClinicResponse, status_code=201)
def create_clinic(
    body: ClinicCreateRequest,
    user: UserProfile = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    """Register a clinic and make the caller its doctor."""
    try:
        clinic = register_clinic(db, user, body.cnpj, body.name, body.logo_url)
    except ValueError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A clinic with this CNPJ is already registered.")
    except Exception as e:
        db.rollback()
        logger.error(f"Clinic registration failed for user {user.uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Could not register the clinic.")

    return ClinicResponse(id=clinic.id, name=clinic.name, owner_id=clinic.owner_id)
