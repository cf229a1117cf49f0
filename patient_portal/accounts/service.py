"""
Account Service - Staff operations over patient accounts.

Inactivation is one-way: there is no reactivation operation, and repeating an
inactivation is rejected rather than silently accepted.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Request
from sqlalchemy import and_, nulls_first, or_
from sqlalchemy.orm import Session

from ..core.audit_models import AuditAction
from ..core.audit_service import AuditRecorder
from ..core.permissions import Identity
from ..database import utcnow
from ..patients.models import Patient
from .exceptions import AlreadyInactiveException, PatientNotFoundException
from .schemas import (
    InactiveAccount,
    InactiveAccountsReport,
    InactivityCriteria,
    InactivityStatistics,
    OldestAccount,
)

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50
DEFAULT_INACTIVE_YEARS = 7
DEFAULT_INACTIVATION_REASON = "No reason provided"


def subtract_years(moment: datetime, years: int) -> datetime:
    """
    Move a timestamp back by whole calendar years (29 February becomes 28 February).

    Args:
        moment: Starting point
        years: Number of years to go back

    Returns:
        datetime: The shifted timestamp
    """
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        return moment.replace(year=moment.year - years, day=28)


def search_patients(db: Session, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Patient]:
    """
    Find patient accounts by name, email or exact ID.

    An empty query returns no accounts rather than all of them.

    Args:
        db: Database session
        query: Case-insensitive fragment of email, first or last name, or a full patient ID
        limit: Maximum number of results

    Returns:
        List of patients ordered by last name
    """
    term = (query or "").strip().lower()
    if not term:
        return []

    return (
        db.query(Patient)
        .filter(
            or_(
                Patient.email.icontains(term, autoescape=True),
                Patient.first_name.icontains(term, autoescape=True),
                Patient.last_name.icontains(term, autoescape=True),
                Patient.id == term,
            )
        )
        .order_by(Patient.last_name.asc(), Patient.first_name.asc())
        .limit(limit)
        .all()
    )


def inactivate_account(
    db: Session,
    patient_id: str,
    actor: Identity,
    recorder: AuditRecorder,
    reason: Optional[str] = None,
    request: Optional[Request] = None,
) -> Patient:
    """
    Inactivate a patient account, blocking future logins.

    Args:
        db: Database session
        patient_id: ID of the patient to inactivate
        actor: Staff member performing the inactivation
        recorder: Audit recorder
        reason: Why the account is being inactivated
        request: FastAPI request object for audit logging

    Returns:
        Patient: The inactivated patient

    Raises:
        PatientNotFoundException: If the patient does not exist
        AlreadyInactiveException: If the account is already inactive
    """
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise PatientNotFoundException()

    # Conditional update so that only one of two racing requests succeeds
    updated = (
        db.query(Patient)
        .filter(Patient.id == patient_id, Patient.is_active.is_(True))
        .update({Patient.is_active: False, Patient.updated_at: utcnow()}, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise AlreadyInactiveException()
    db.commit()
    db.refresh(patient)

    logger.info(f"Patient {patient.id} inactivated by {actor.role.value} {actor.id}")
    recorder.record_request(
        db,
        request,
        AuditAction.INACTIVATE,
        actor,
        patient_id=patient.id,
        details={
            "reason": (reason or "").strip() or DEFAULT_INACTIVATION_REASON,
            "patientEmail": patient.email,
            "patientName": patient.full_name,
        },
    )
    return patient


def get_inactive_accounts(
    db: Session,
    min_years: int = DEFAULT_INACTIVE_YEARS,
    now: Optional[datetime] = None,
) -> List[Patient]:
    """
    List accounts with no login for at least ``min_years`` years.

    An account qualifies when its last access is on or before the cutoff, or
    when it has never been accessed and was created on or before the cutoff.

    Args:
        db: Database session
        min_years: Inactivity threshold in years
        now: Reference time (defaults to the current time)

    Returns:
        Patients ordered by last access, never-accessed accounts first
    """
    cutoff = subtract_years(now or utcnow(), min_years)
    return (
        db.query(Patient)
        .filter(
            or_(
                and_(Patient.last_access_date.is_(None), Patient.created_at <= cutoff),
                Patient.last_access_date <= cutoff,
            )
        )
        .order_by(nulls_first(Patient.last_access_date.asc()), Patient.created_at.asc())
        .all()
    )


def build_inactive_accounts_report(
    db: Session,
    min_years: int = DEFAULT_INACTIVE_YEARS,
    now: Optional[datetime] = None,
) -> InactiveAccountsReport:
    """
    Inactive accounts plus summary statistics for the staff report.

    Reading the report is not audited.
    """
    now = now or utcnow()
    accounts = get_inactive_accounts(db, min_years, now)

    oldest = accounts[0] if accounts else None
    statistics = InactivityStatistics(
        total_inactive=len(accounts),
        never_accessed=sum(1 for patient in accounts if patient.last_access_date is None),
        oldest_account=OldestAccount(
            email=oldest.email,
            name=oldest.full_name,
            last_access=oldest.last_access_date,
        ) if oldest else None,
    )
    return InactiveAccountsReport(
        accounts=[InactiveAccount.model_validate(patient) for patient in accounts],
        statistics=statistics,
        criteria=InactivityCriteria(minimum_years=min_years, cutoff_date=subtract_years(now, min_years)),
    )
