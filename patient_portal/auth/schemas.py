"""
Auth Schemas - Pydantic models for registration, verification and login.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr

from ..core.schemas import ApiModel


class PatientRegistration(ApiModel):
    """
    Patient Registration Schema - Used for patient self-registration

    Fields:
    - email: Patient's email address (stored lower-cased)
    - password: Plain text password, at least 8 characters (hashed before storage)
    - first_name / last_name: Patient's name
    - date_of_birth, phone, address: Optional demographics
    """
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class LoginRequest(ApiModel):
    """
    Login Schema - Used by all three login endpoints

    Both fields are checked by the service so that a missing value yields the
    same message whatever the account kind.
    """
    email: Optional[str] = None
    password: Optional[str] = None


class RegisteredPatient(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    is_verified: bool


class RegistrationResponse(ApiModel):
    message: str
    patient: RegisteredPatient


class VerificationResponse(ApiModel):
    message: str
    verified: bool


class PatientProfile(ApiModel):
    """Patient summary returned on login (never includes the password)."""
    id: str
    email: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    is_verified: bool
    last_access_date: Optional[datetime] = None


class ProviderProfile(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str


class StaffProfile(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    permissions: List[str] = []


class PatientLoginResponse(ApiModel):
    token: str
    patient: PatientProfile


class ProviderLoginResponse(ApiModel):
    token: str
    provider: ProviderProfile


class StaffLoginResponse(ApiModel):
    token: str
    staff: StaffProfile
