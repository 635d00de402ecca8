import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import EmailAlreadyRegisteredError
from app.core.security import create_user_token, verify_password
from app.schemas.auth import SignupRequest, SignupResponse, TokenResponse
from app.services.user_service import find_profile_by_email, initialize_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    try:
        profile = initialize_profile(
            db,
            email=body.email,
            password=body.password,
            display_name=body.display_name,
        )
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="Email already registered")
    except Exception as e:
        db.rollback()
        logger.error(f"Signup failed for {body.email}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Could not create the account.")

    return SignupResponse(message="User created successfully", uid=profile.uid)


@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    # The OAuth2 form field is "username"; it carries the email
    user = find_profile_by_email(db, form_data.username)

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return TokenResponse(access_token=create_user_token(user, settings))

