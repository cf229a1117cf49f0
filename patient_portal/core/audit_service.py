"""
Audit trail recording.

Writes are fire-and-forget relative to the caller: a failure to persist an
entry is logged and discarded so that an unavailable audit store never blocks
the operation being audited.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .audit_models import AuditAction, AuditLog
from .permissions import ActorRole, Identity

# Set up logging
logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def get_client_ip(request: Optional[Request]) -> str:
    """
    Extract the originating client address of a request.

    Args:
        request: Incoming request (may be None outside HTTP handling)

    Returns:
        str: First X-Forwarded-For hop, else X-Real-IP, else "unknown"
    """
    if request is None:
        return UNKNOWN
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return UNKNOWN


def get_user_agent(request: Optional[Request]) -> str:
    if request is None:
        return UNKNOWN
    return request.headers.get("user-agent") or UNKNOWN


class AuditEntry(BaseModel):
    """
    Audit entry to append.

    Fields:
    - action: What happened
    - actor_type / actor_id: Who did it
    - patient_id: Patient record the action targeted, if any
    - ip_address / user_agent: Where the request came from
    - details: Free-form context
    """
    action: AuditAction
    actor_type: ActorRole
    actor_id: str
    patient_id: Optional[str] = None
    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN
    details: Dict[str, Any] = Field(default_factory=dict)


class AuditRecorder:
    """Appends entries to the audit store without ever raising to the caller."""

    def record(self, db: Session, entry: AuditEntry) -> Optional[AuditLog]:
        """
        Persist an audit entry.

        Args:
            db: The database session
            entry: Entry to append

        Returns:
            The stored AuditLog, or None when the write failed
        """
        audit_log = AuditLog(**entry.model_dump())
        try:
            db.add(audit_log)
            db.commit()
        except Exception as e:
            logger.error(f"Error creating audit log ({entry.action.value} by {entry.actor_type.value} {entry.actor_id}): {str(e)}")
            try:
                db.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback after audit failure also failed: {str(rollback_error)}")
            return None
        return audit_log

    def record_request(
        self,
        db: Session,
        request: Optional[Request],
        action: AuditAction,
        actor: Identity,
        patient_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Record an action performed by an authenticated actor during a request.

        Args:
            db: The database session
            request: Request to take the client address and user agent from
            action: What happened
            actor: Who did it
            patient_id: Patient record the action targeted, if any
            details: Free-form context
        """
        entry = AuditEntry(
            action=action,
            actor_type=actor.role,
            actor_id=actor.id,
            patient_id=patient_id,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            details=details or {},
        )
        return self.record(db, entry)


audit_recorder = AuditRecorder()


def get_audit_recorder() -> AuditRecorder:
    """Dependency returning the audit recorder."""
    return audit_recorder


def list_audit_logs(
    db: Session,
    patient_id: Optional[str] = None,
    action: Optional[AuditAction] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[AuditLog]:
    """
    Read the audit trail, newest entries first.

    Args:
        db: The database session
        patient_id: Only entries about this patient
        action: Only entries of this action
        limit: Maximum number of entries
        offset: Number of entries to skip
    """
    query = db.query(AuditLog)
    if patient_id:
        query = query.filter(AuditLog.patient_id == patient_id)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.timestamp.desc()).offset(offset).limit(limit).all()
