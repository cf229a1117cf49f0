"""
Patient Schemas - Pydantic models for patient record reads, updates and searches.

Update payloads are validated here; a violation becomes a 400 response listing
the offending fields.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ..core.schemas import ApiModel

MAX_NAME_LENGTH = 100
PHONE_PATTERN = r"^[\d\s\-\+\(\)]+$"


class Vitals(ApiModel):
    """
    Vital signs with accepted ranges

    Fields:
    - blood_pressure: e.g. "120/80"
    - heart_rate: 30-250 bpm
    - temperature: 90-110 F
    - weight: 1-1000 lbs
    - height: 10-100 inches
    - respiratory_rate: 5-60 breaths/min
    - oxygen_saturation: 0-100 %
    """
    blood_pressure: Optional[str] = None
    heart_rate: Optional[float] = Field(None, ge=30, le=250)
    temperature: Optional[float] = Field(None, ge=90, le=110)
    weight: Optional[float] = Field(None, ge=1, le=1000)
    height: Optional[float] = Field(None, ge=10, le=100)
    respiratory_rate: Optional[float] = Field(None, ge=5, le=60)
    oxygen_saturation: Optional[float] = Field(None, ge=0, le=100)


class LabResult(ApiModel):
    id: Optional[str] = None
    test_name: str = Field(..., min_length=1)
    date: date
    result: str = Field(..., min_length=1)
    normal_range: Optional[str] = None
    notes: Optional[str] = None


class Medication(ApiModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    dosage: str = Field(..., min_length=1)
    frequency: str = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = None
    prescribed_by: Optional[str] = None
    notes: Optional[str] = None


class PatientUpdate(ApiModel):
    """
    Patient Update Schema - Fields a provider may change; omitted fields are left untouched
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = None
    vitals: Optional[Vitals] = None
    visit_summary: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    lab_results: Optional[List[LabResult]] = None
    medications: Optional[List[Medication]] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        """Names may be changed but not blanked"""
        if v is None or not v.strip():
            raise ValueError("Name is required")
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"Name must be {MAX_NAME_LENGTH} characters or less")
        return v.strip()


class PatientRecord(ApiModel):
    """
    Full patient record as shown to providers (never includes credentials)
    """
    id: str
    email: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    vitals: Optional[Dict[str, Any]] = None
    visit_summary: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    lab_results: Optional[List[Dict[str, Any]]] = None
    medications: Optional[List[Dict[str, Any]]] = None
    is_active: bool
    is_verified: bool
    last_access_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PatientListItem(ApiModel):
    id: str
    first_name: str
    last_name: str
    email: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    is_active: bool


class PatientSearchResponse(ApiModel):
    patients: List[PatientListItem]
    total: int
