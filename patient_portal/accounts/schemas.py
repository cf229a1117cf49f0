"""
Account Schemas - Pydantic models for staff account management and reports.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from ..core.audit_models import AuditAction
from ..core.permissions import ActorRole
from ..core.schemas import ApiModel


class AccountSummary(ApiModel):
    """
    Patient account as seen by staff

    Fields:
    - id, email, first_name, last_name: Identification
    - date_of_birth, phone: Demographics used to tell namesakes apart
    - is_active / is_verified: Account flags
    - last_access_date: Last successful login (None if never)
    - created_at: Registration time
    """
    id: str
    email: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    is_active: bool
    is_verified: bool
    last_access_date: Optional[datetime] = None
    created_at: datetime


class StaffPatientSearchResponse(ApiModel):
    patients: List[AccountSummary]
    count: int


class InactivateRequest(ApiModel):
    reason: Optional[str] = Field(None, max_length=500, description="Why the account is being inactivated")


class InactivateResponse(ApiModel):
    message: str
    patient: AccountSummary


class InactiveAccount(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    last_access_date: Optional[datetime] = None
    created_at: datetime
    is_active: bool


class OldestAccount(ApiModel):
    email: str
    name: str
    last_access: Optional[datetime] = None


class InactivityStatistics(ApiModel):
    total_inactive: int
    never_accessed: int
    oldest_account: Optional[OldestAccount] = None


class InactivityCriteria(ApiModel):
    minimum_years: int
    cutoff_date: datetime


class InactiveAccountsReport(ApiModel):
    """
    Inactive Accounts Report - accounts not used for at least ``minimum_years``

    Accounts are ordered by last access, never-accessed accounts first.
    """
    accounts: List[InactiveAccount]
    statistics: InactivityStatistics
    criteria: InactivityCriteria


class AuditLogResponse(ApiModel):
    id: str
    action: AuditAction
    actor_type: ActorRole
    actor_id: str
    patient_id: Optional[str] = None
    ip_address: str
    user_agent: str
    details: Dict[str, Any] = {}
    timestamp: datetime
