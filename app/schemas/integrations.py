"""
Payloads sent by the n8n automation (WhatsApp onboarding and log import).
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class StagedSignupRequest(BaseModel):
    phone_number: str = Field(..., alias="phoneNumber", min_length=2)
    clinic_id: str = Field(..., alias="clinicId", min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None
    cpf: Optional[str] = None

    class Config:
        populate_by_name = True


class CreateStagedUserRequest(BaseModel):
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)

    class Config:
        populate_by_name = True


class LogBatch(BaseModel):
    # Entries stay loosely typed; each one is checked individually during import
    urinary_logs: List[Dict[str, Any]] = Field(default_factory=list, alias="urinaryLogs")
    erectile_logs: List[Dict[str, Any]] = Field(default_factory=list, alias="erectileLogs")
    psa_logs: List[Dict[str, Any]] = Field(default_factory=list, alias="psaLogs")

    class Config:
        populate_by_name = True


class LogImportRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    logs: LogBatch

    class Config:
        populate_by_name = True
