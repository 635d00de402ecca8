from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Float, JSON, ForeignKey
from sqlalchemy.sql import func
from app.db.base import Base


class UrinaryLog(Base):
    __tablename__ = "urinary_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_uid = Column(String(64), ForeignKey("users.uid"), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    urgency = Column(Boolean, default=False)
    burning = Column(Boolean, default=False)
    physiotherapy_exercise = Column(Boolean, default=False)
    loss_grams = Column(Float, nullable=True)
    pad_changes = Column(Integer, nullable=True)
    medication_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ErectileLog(Base):
    __tablename__ = "erectile_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_uid = Column(String(64), ForeignKey("users.uid"), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    erection_quality = Column(String, nullable=True)
    medication_used = Column(JSON, nullable=True)
    medication_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PSALog(Base):
    __tablename__ = "psa_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_uid = Column(String(64), ForeignKey("users.uid"), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    psa_value = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
