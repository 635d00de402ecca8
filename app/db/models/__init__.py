"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from app.db.models.clinic import Clinic
from app.db.models.user import UserProfile
from app.db.models.patient_invite import PatientInvite
from app.db.models.signup_status import SignupStatus
from app.db.models.health_log import UrinaryLog, ErectileLog, PSALog

__all__ = [
    "Clinic",
    "UserProfile",
    "PatientInvite",
    "SignupStatus",
    "UrinaryLog",
    "ErectileLog",
    "PSALog",
]
