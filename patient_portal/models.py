"""
Import every model so that SQLAlchemy can resolve relationships and
``Base.metadata`` knows all tables (used by start-up, Alembic and tests).
"""
from .database import Base
from .auth.models import Provider, Staff
from .patients.models import Patient
from .billing.models import Bill, BillStatus
from .core.audit_models import AuditLog, AuditAction

__all__ = ["Base", "Provider", "Staff", "Patient", "Bill", "BillStatus", "AuditLog", "AuditAction"]
