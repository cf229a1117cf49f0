"""
Patient Service - Business logic for provider access to patient records.

Every read or update of an individual record by a provider produces exactly
one audit entry.
"""
import logging
from typing import List, Optional, Tuple

from fastapi import Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.audit_models import AuditAction
from ..core.audit_service import AuditRecorder
from ..core.permissions import Identity
from ..exceptions import NotFoundException
from .models import Patient
from .schemas import PatientUpdate

# Set up logging
logger = logging.getLogger(__name__)

JSON_FIELDS = ("vitals", "lab_results", "medications")


def get_patient(db: Session, patient_id: str) -> Patient:
    """
    Get a patient by ID.

    Args:
        db: Database session
        patient_id: ID of the patient

    Returns:
        Patient: The patient

    Raises:
        NotFoundException: If the patient does not exist
    """
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise NotFoundException("Patient not found")
    return patient


def get_patient_record(
    db: Session,
    patient_id: str,
    actor: Identity,
    recorder: AuditRecorder,
    request: Optional[Request] = None,
) -> Patient:
    """
    Read a patient record on behalf of an actor and audit the access.

    Raises:
        NotFoundException: If the patient does not exist
    """
    patient = get_patient(db, patient_id)
    recorder.record_request(db, request, AuditAction.ACCESS, actor, patient_id=patient.id)
    return patient


def update_patient(
    db: Session,
    patient_id: str,
    update: PatientUpdate,
    actor: Identity,
    recorder: AuditRecorder,
    request: Optional[Request] = None,
) -> Patient:
    """
    Apply the supplied fields of ``update`` to a patient record.

    Args:
        db: Database session
        patient_id: ID of the patient
        update: Validated changes; unset fields are ignored
        actor: Who is making the change
        recorder: Audit recorder
        request: FastAPI request object for audit logging

    Returns:
        Patient: Updated patient

    Raises:
        NotFoundException: If the patient does not exist
    """
    patient = get_patient(db, patient_id)

    changes = update.model_dump(exclude_unset=True)
    for field in JSON_FIELDS:
        if changes.get(field) is not None:
            value = getattr(update, field)
            if isinstance(value, list):
                changes[field] = [item.model_dump(mode="json", by_alias=True) for item in value]
            else:
                changes[field] = value.model_dump(mode="json", by_alias=True, exclude_none=True)

    for field, value in changes.items():
        setattr(patient, field, value)

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating patient {patient_id}: {str(e)}")
        raise
    db.refresh(patient)
    logger.info(f"Patient {patient_id} updated by {actor.role.value} {actor.id}: {sorted(changes)}")

    recorder.record_request(
        db,
        request,
        AuditAction.UPDATE,
        actor,
        patient_id=patient.id,
        details={"fields": sorted(changes)},
    )
    return patient


def search_patients(
    db: Session,
    query: str = "",
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Patient], int]:
    """
    Page through active patients, optionally filtered by name or email.

    Args:
        db: Database session
        query: Case-insensitive substring of first name, last name or email
        limit: Page size
        offset: Number of patients to skip

    Returns:
        Tuple of (patients ordered by last name, total matching count)
    """
    filters = [Patient.is_active.is_(True)]
    term = (query or "").strip()
    if term:
        filters.append(
            or_(
                Patient.first_name.icontains(term, autoescape=True),
                Patient.last_name.icontains(term, autoescape=True),
                Patient.email.icontains(term, autoescape=True),
            )
        )

    base_query = db.query(Patient).filter(*filters)
    total = base_query.count()
    patients = (
        base_query.order_by(Patient.last_name.asc(), Patient.first_name.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return patients, total
