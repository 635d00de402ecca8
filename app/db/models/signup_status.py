from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class SignupStatus(Base):
    """
    Staging record for users onboarded through the WhatsApp automation.

    Keyed by phone number; the automation fills in the contact details
    before asking for the account to be created.
    """
    __tablename__ = "signup_status"

    phone_number = Column(String(32), primary_key=True)
    clinic_id = Column(String, nullable=False)
    email = Column(String, nullable=True)
    name = Column(String, nullable=True)
    cpf = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
