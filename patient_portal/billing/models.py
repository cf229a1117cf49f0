"""
Bill Model - Charges owed by a patient and their payment state.
"""
import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship

from ..database import Base, generate_id, utcnow


class BillStatus(str, enum.Enum):
    """
    Bill lifecycle:
    - PENDING -> PAID (payment succeeded), FAILED (payment rejected) or OVERDUE (sweep)
    - FAILED / OVERDUE -> PAID on a successful retry
    """
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    FAILED = "failed"


OUTSTANDING_STATUSES = (BillStatus.PENDING, BillStatus.OVERDUE)


class Bill(Base):
    __tablename__ = "bills"

    id = Column(String(36), primary_key=True, default=generate_id)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)  # 10 digits total, 2 decimal places
    status = Column(
        Enum(BillStatus, name="bill_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BillStatus.PENDING,
        index=True,
    )
    description = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    payment_reference = Column(String, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    patient = relationship("Patient", back_populates="bills")

    def __repr__(self):
        return f"<Bill(id={self.id}, patient_id={self.patient_id}, amount={self.amount}, status='{self.status}')>"
