from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal
from app.db.models.user import UserProfile

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> str:
    """Get current user uid from JWT token."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        uid: str = payload.get("sub")

        if uid is None:
            raise HTTPException(status_code=401, detail="Invalid token")

        return uid

    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user_obj(
    uid: str = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> UserProfile:
    """Get current UserProfile from JWT token."""
    user = db.query(UserProfile).filter(UserProfile.uid == uid).first()
    if not user:
        raise HTTPException(
            status_code=404,
            detail="User profile not found"
        )
    return user


def get_current_doctor(user: UserProfile = Depends(get_current_user_obj)) -> UserProfile:
    """Current user, required to be a doctor attached to a clinic."""
    if user.role != "doctor":
        raise HTTPException(status_code=403, detail="Only doctors can perform this action.")
    if not user.clinic_id:
        raise HTTPException(status_code=403, detail="Requester is not associated with any clinic.")
    return user
