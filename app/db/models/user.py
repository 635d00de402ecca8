import uuid

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from app.db.base import Base


def _new_uid() -> str:
    return uuid.uuid4().hex


class UserProfile(Base):
    """
    One profile per identity: doctors, patients and plain users.

    The subscription fields are the single source of truth for entitlement
    decisions. Gateway identifiers are written by checkout initiation and
    reconciliation only.
    """
    __tablename__ = "users"

    uid = Column(String(64), primary_key=True, default=_new_uid)
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=False)
    password_hash = Column(String)
    role = Column(String, nullable=False, default="user")  # user | doctor
    clinic_id = Column(String, ForeignKey("clinics.id"), nullable=True, index=True)

    cpf = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    birth_date = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    address = Column(JSON, nullable=True)

    subscription_status = Column(String, nullable=False, default="free")
    subscription_plan = Column(String, nullable=False, default="free")
    patient_limit = Column(Integer, nullable=False, default=5)

    asaas_customer_id = Column(String, nullable=True)
    asaas_subscription_id = Column(String, nullable=True, index=True)
    stripe_customer_id = Column(String, nullable=True, index=True)
    stripe_subscription_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def subscription(self) -> dict:
        return {
            "status": self.subscription_status,
            "plan": self.subscription_plan,
            "patientLimit": self.patient_limit,
        }
