"""
Pydantic schemas for clinic, patient and invite endpoints.
"""
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class Address(BaseModel):
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")

    class Config:
        populate_by_name = True


class ClinicCreateRequest(BaseModel):
    cnpj: str = Field(..., description="Clinic CNPJ, digits only")
    name: str = Field(..., min_length=1, max_length=200)
    logo_url: Optional[str] = Field(None, alias="logoUrl")

    @field_validator("cnpj")
    @classmethod
    def validate_cnpj(cls, v: str) -> str:
        digits = "".join(ch for ch in v if ch.isdigit())
        if len(digits) != 14:
            raise ValueError("CNPJ must have 14 digits")
        return digits

    class Config:
        populate_by_name = True


class ClinicResponse(BaseModel):
    id: str
    name: str
    owner_id: str = Field(..., alias="ownerId")

    class Config:
        populate_by_name = True


class PatientCreateRequest(BaseModel):
    """Patient account created by a doctor."""
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = Field(None, alias="birthDate")
    gender: Optional[Literal["Masculino", "Feminino"]] = None
    address: Optional[Address] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "displayName": "Carlos Pereira",
                "email": "carlos@example.com",
                "password": "temp1234",
                "cpf": "12345678901",
                "phone": "+5511999999999",
                "birthDate": "1958-03-14",
                "gender": "Masculino",
                "address": {"zipCode": "01310-100", "city": "São Paulo", "state": "SP"}
            }
        }


class PatientCreateResponse(BaseModel):
    success: bool = True
    message: str
    uid: str


class CompleteRegistrationRequest(BaseModel):
    """Personal data filled in by a user after their first login."""
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = Field(None, alias="birthDate")
    gender: Optional[Literal["Masculino", "Feminino"]] = None
    address: Optional[Address] = None
    clinic_id: Optional[str] = Field(None, alias="clinicId")
    invite_id: Optional[str] = Field(None, alias="inviteId")

    class Config:
        populate_by_name = True


class InviteRequest(BaseModel):
    email: EmailStr


class InviteResponse(BaseModel):
    success: bool = True
    message: str
    invite_id: str = Field(..., alias="inviteId")

    class Config:
        populate_by_name = True


class ProfileResponse(BaseModel):
    uid: str
    email: str
    display_name: str = Field(..., alias="displayName")
    role: str
    clinic_id: Optional[str] = Field(None, alias="clinicId")
    subscription: dict

    class Config:
        populate_by_name = True
        from_attributes = True
