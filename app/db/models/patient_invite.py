import uuid
from datetime import datetime, timedelta

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.db.base import Base

INVITE_TTL = timedelta(hours=48)


class PatientInvite(Base):
    """Invitation sent by a doctor for a patient to join their clinic."""
    __tablename__ = "patient_invites"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    email_to_invite = Column(String, nullable=False, index=True)
    clinic_id = Column(String, ForeignKey("clinics.id"), nullable=False)
    invited_by_uid = Column(String(64), ForeignKey("users.uid"), nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending | accepted | expired
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime, nullable=False)

    @staticmethod
    def default_expiry(now: datetime = None) -> datetime:
        return (now or datetime.utcnow()) + INVITE_TTL

    def is_expired(self, now: datetime = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at
