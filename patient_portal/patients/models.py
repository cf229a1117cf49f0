"""
Patient Model - Stores patient accounts together with their medical record.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, JSON
from sqlalchemy.orm import relationship

from ..database import Base, generate_id, utcnow


class Patient(Base):
    """
    Patient Model - Stores patient-specific information

    Fields:
    - id: Primary key (UUID string)
    - email: Unique, stored lower-cased
    - password_hash: bcrypt digest (never the raw password)
    - first_name / last_name: Patient's name
    - date_of_birth, phone, address: Demographics
    - vitals: Latest vitals (JSON object)
    - visit_summary, diagnosis, treatment: Clinical notes
    - lab_results, medications: JSON lists
    - is_active: False once staff inactivate the account (one-way)
    - is_verified: Whether the email address has been confirmed
    - verification_token: Token mailed at registration, cleared on verification
    - last_access_date: Last successful login
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, index=True)
    date_of_birth = Column(Date, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    vitals = Column(JSON, nullable=True)
    visit_summary = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    treatment = Column(Text, nullable=True)
    lab_results = Column(JSON, nullable=True)
    medications = Column(JSON, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String, nullable=True, index=True)
    last_access_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    # Relationships
    bills = relationship("Bill", back_populates="patient", order_by="Bill.created_at.desc()")
    audit_logs = relationship("AuditLog", back_populates="patient")

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, email='{self.email}')>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
