import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship

from ..database import Base, generate_id, utcnow
from .permissions import ActorRole


class AuditAction(str, enum.Enum):
    ACCESS = "access"
    UPDATE = "update"
    CREATE = "create"
    DELETE = "delete"
    INACTIVATE = "inactivate"
    LOGIN = "login"
    PAYMENT = "payment"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AuditLog(Base):
    """Append-only record of a sensitive action. Never updated or deleted by the application."""
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    action = Column(Enum(AuditAction, name="audit_action", values_callable=_enum_values), nullable=False, index=True)
    actor_type = Column(Enum(ActorRole, name="actor_role", values_callable=_enum_values), nullable=False)
    actor_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=True, index=True)
    ip_address = Column(String, nullable=False, default="unknown")
    user_agent = Column(String, nullable=False, default="unknown")
    details = Column(JSON, nullable=False, default=dict)  # Additional context as JSON
    timestamp = Column(DateTime(timezone=True), default=utcnow, index=True)

    patient = relationship("Patient", back_populates="audit_logs")

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor_id={self.actor_id}, patient_id={self.patient_id})>"
