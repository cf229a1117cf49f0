"""
Patient Router - Provider endpoints for reading, updating and searching patient records.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth.dependencies import require_provider
from ..config import settings
from ..core.audit_service import AuditRecorder, get_audit_recorder
from ..core.permissions import Identity
from ..database import get_db
from .schemas import PatientListItem, PatientRecord, PatientSearchResponse, PatientUpdate
from .service import get_patient_record, search_patients, update_patient

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/search", response_model=PatientSearchResponse)
async def search_patients_route(
    q: str = Query("", description="Name or email fragment"),
    limit: int = Query(settings.search_default_limit, ge=1, le=100, description="Items per page"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    db: Session = Depends(get_db),
    current_provider: Identity = Depends(require_provider),
):
    """
    Search active patients

    Listing results is not audited; opening an individual record is.
    """
    patients, total = search_patients(db, q, limit, offset)
    return PatientSearchResponse(
        patients=[PatientListItem.model_validate(patient) for patient in patients],
        total=total,
    )


@router.get("/{patient_id}", response_model=PatientRecord)
async def get_patient_route(
    patient_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_provider: Identity = Depends(require_provider),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Get a patient's full record"""
    return get_patient_record(db, patient_id, current_provider, recorder, request)


@router.put("/{patient_id}", response_model=PatientRecord)
async def update_patient_route(
    patient_id: str,
    update: PatientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_provider: Identity = Depends(require_provider),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Update a patient's record"""
    return update_patient(db, patient_id, update, current_provider, recorder, request)
