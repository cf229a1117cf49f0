"""
Billing Schemas - Pydantic models for bills and payments.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.schemas import ApiModel
from .models import BillStatus


class BillResponse(ApiModel):
    """
    Bill as shown to the patient who owns it

    Fields:
    - id, patient_id: Identification
    - amount: Amount due (dollars)
    - status: pending / paid / overdue / failed
    - description: What the charge is for
    - payment_method: How it was paid (once paid)
    - due_date / paid_at / created_at: Timestamps
    """
    id: str
    patient_id: str
    amount: float
    status: BillStatus
    description: Optional[str] = None
    payment_method: Optional[str] = None
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime


class BillListResponse(ApiModel):
    bills: List[BillResponse]
    outstanding_balance: float
    count: int


class PaymentRequest(ApiModel):
    """Both fields are optional here so that a missing one is reported as a payment error."""
    bill_id: Optional[str] = None
    payment_method_id: Optional[str] = None


class PaymentResponse(ApiModel):
    message: str
    payment_intent_id: str
    bill: BillResponse


class CreateBillRequest(ApiModel):
    patient_id: str
    amount: float = Field(..., gt=0, description="Amount due in dollars")
    description: Optional[str] = Field(None, max_length=500)
    due_date: Optional[datetime] = None


class MarkOverdueResponse(ApiModel):
    updated: int
