"""
Endpoints called by the n8n automation.

Every request carries `Authorization: Bearer <N8N_SECRET_KEY>`.
"""
import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.routes.users import get_email_service
from app.core.auth_dependency import get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import EmailAlreadyRegisteredError, ProfileNotFoundError
from app.schemas.integrations import CreateStagedUserRequest, LogImportRequest, StagedSignupRequest
from app.services.email_service import EmailService
from app.services.log_import_service import import_logs
from app.services.registration_service import create_user_from_staging, stage_signup

logger = logging.getLogger(__name__)


def verify_n8n_secret(
    authorization: str = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.n8n_secret_key:
        logger.error("N8N_SECRET_KEY is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error.")

    expected = f"Bearer {settings.n8n_secret_key}"
    if not authorization or not hmac.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Unauthorized integration call")
        raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(
    prefix="/integrations",
    tags=["Integrations"],
    dependencies=[Depends(verify_n8n_secret)],
)


@router.post("/signups", status_code=201)
def create_staged_signup(body: StagedSignupRequest, db: Session = Depends(get_db)):
    staged = stage_signup(db, body)
    return {"success": True, "phoneNumber": staged.phone_number}


@router.post("/users", status_code=201)
def create_staged_user(
    body: CreateStagedUserRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    try:
        provisioned = create_user_from_staging(db, body.phone_number, email_service)
    except ProfileNotFoundError:
        raise HTTPException(status_code=404, detail="Signup data not found.")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmailAlreadyRegisteredError:
        db.rollback()
        raise HTTPException(status_code=409, detail="This email is already in use by another account.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating user from staged signup {body.phone_number}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error while creating the user.")

    return {
        "success": True,
        "uid": provisioned.profile.uid,
        "emailSent": provisioned.email_sent,
    }


@router.post("/logs")
def import_user_logs(body: LogImportRequest, db: Session = Depends(get_db)):
    try:
        count = import_logs(db, body.user_id, body.logs)
    except ProfileNotFoundError:
        raise HTTPException(status_code=404, detail="User not found.")
    except Exception as e:
        logger.error(f"Error importing logs for user {body.user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error while saving the logs.")

    if count == 0:
        return JSONResponse(status_code=400, content={"status": "no_logs"})

    return {"status": "success", "imported": count}
