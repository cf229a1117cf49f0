"""
Account Router - Staff endpoints for patient account management, the audit
trail and the inactive accounts report.
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth.dependencies import require_staff
from ..config import settings
from ..core.audit_models import AuditAction
from ..core.audit_service import AuditRecorder, get_audit_recorder, list_audit_logs
from ..core.permissions import Identity
from ..database import get_db
from .schemas import (
    AccountSummary,
    AuditLogResponse,
    InactivateRequest,
    InactivateResponse,
    InactiveAccountsReport,
    StaffPatientSearchResponse,
)
from .service import build_inactive_accounts_report, inactivate_account, search_patients

router = APIRouter(tags=["Staff"])


@router.get("/staff/patients/search", response_model=StaffPatientSearchResponse)
async def search_patient_accounts_route(
    q: str = Query("", description="Name, email or patient ID"),
    limit: int = Query(settings.search_default_limit, ge=1, le=100),
    db: Session = Depends(get_db),
    current_staff: Identity = Depends(require_staff),
):
    """Search patient accounts, active and inactive"""
    patients = search_patients(db, q, limit)
    return StaffPatientSearchResponse(
        patients=[AccountSummary.model_validate(patient) for patient in patients],
        count=len(patients),
    )


@router.post("/staff/patients/{patient_id}/inactivate", response_model=InactivateResponse)
async def inactivate_patient_route(
    patient_id: str,
    request: Request,
    body: Optional[InactivateRequest] = Body(None),
    db: Session = Depends(get_db),
    current_staff: Identity = Depends(require_staff),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Inactivate a patient account

    The patient can no longer log in. Inactivating an already inactive
    account returns 409.
    """
    reason = body.reason if body else None
    patient = inactivate_account(db, patient_id, current_staff, recorder, reason, request)
    return InactivateResponse(
        message="Patient account has been inactivated successfully",
        patient=AccountSummary.model_validate(patient),
    )


@router.get("/staff/audit-logs", response_model=List[AuditLogResponse])
async def list_audit_logs_route(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    action: Optional[AuditAction] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_staff: Identity = Depends(require_staff),
):
    """Read the audit trail, newest first"""
    return list_audit_logs(db, patient_id, action, limit, offset)


@router.get("/reports/inactive-accounts", response_model=InactiveAccountsReport)
async def inactive_accounts_report_route(
    years: int = Query(settings.inactive_report_default_years, ge=0, description="Minimum years without login"),
    db: Session = Depends(get_db),
    current_staff: Identity = Depends(require_staff),
):
    """Accounts that have not logged in for at least ``years`` years"""
    return build_inactive_accounts_report(db, years)
