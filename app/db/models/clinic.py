from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class Clinic(Base):
    __tablename__ = "clinics"

    id = Column(String(32), primary_key=True)  # CNPJ
    name = Column(String, nullable=False)
    owner_id = Column(String(64), nullable=False, index=True)  # users.uid
    logo_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
