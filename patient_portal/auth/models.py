"""
Provider and Staff account models.

Patients live in ``patients.models``; the three account tables share the
credential columns (email, password_hash, is_active) and differ in the rest.
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON

from ..database import Base, generate_id, utcnow


class Provider(Base):
    """
    Provider Model - Clinicians allowed to read and update patient records

    Fields:
    - role: Free-text job label ("Doctor", "Nurse Practitioner", ...)
    - permissions: List of permission labels
    """
    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String, nullable=False, default="Doctor")
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    def __repr__(self):
        return f"<Provider(id={self.id}, email='{self.email}', role='{self.role}')>"


class Staff(Base):
    """
    Staff Model - Administrative users who manage patient accounts and reports
    """
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String, nullable=False, default="Administrator")
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    def __repr__(self):
        return f"<Staff(id={self.id}, email='{self.email}', role='{self.role}')>"
