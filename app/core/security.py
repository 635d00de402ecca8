import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from jose import jwt
from passlib.context import CryptContext

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Hashes created by older tooling go through passlib, new ones use bcrypt directly
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72
TEMPORARY_PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


def _truncate(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        logger.warning("Password exceeds 72 bytes, truncating before hashing")
        password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
    return password_bytes


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Passwords longer than bcrypt's 72-byte limit are truncated; request
    validation should already have rejected them.

    Raises:
        ValueError: If the password cannot be hashed
    """
    try:
        return bcrypt.hashpw(_truncate(password), bcrypt.gensalt()).decode("utf-8")
    except (TypeError, ValueError) as e:
        logger.error(f"Password hashing failed: {e}")
        raise ValueError("Invalid password") from e


def verify_password(password: str, hashed: Optional[str]) -> bool:
    """Verify a password against its hash. Never raises."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_truncate(password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        try:
            return pwd_context.verify(password, hashed)
        except (ValueError, TypeError) as e:
            logger.error(f"Password verification failed: {e}")
            return False


def generate_temporary_password(length: int = 10) -> str:
    """Random password for accounts provisioned on a user's behalf."""
    return "".join(secrets.choice(TEMPORARY_PASSWORD_ALPHABET) for _ in range(length))


def create_access_token(data: dict, settings: Settings, expires_delta: timedelta = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(profile, settings: Settings) -> str:
    """Access token carrying the identity claims used for authorization."""
    return create_access_token(
        {
            "sub": profile.uid,
            "role": profile.role,
            "clinic_id": profile.clinic_id,
        },
        settings,
    )
