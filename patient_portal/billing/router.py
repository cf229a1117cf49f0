"""
Billing Router - Patient bills and payments, plus staff bill management.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_patient, require_staff
from ..auth.email import MailSender, get_mail_sender
from ..core.audit_service import AuditRecorder, get_audit_recorder
from ..core.permissions import Identity
from ..database import get_db
from ..exceptions import ValidationException
from .gateway import MockPaymentGateway, get_payment_gateway
from .schemas import (
    BillListResponse,
    BillResponse,
    CreateBillRequest,
    MarkOverdueResponse,
    PaymentRequest,
    PaymentResponse,
)
from .service import (
    create_bill,
    get_bills_by_status,
    get_outstanding_balance,
    mark_overdue_bills,
    process_payment,
)

router = APIRouter(tags=["Billing"])


@router.get("/bills", response_model=BillListResponse)
async def list_bills_route(
    status_filter: Optional[str] = Query(None, alias="status", description="pending or paid"),
    db: Session = Depends(get_db),
    current_patient: Identity = Depends(require_patient),
):
    """
    List the caller's own bills

    The patient id always comes from the token, never from the request.
    """
    bills = get_bills_by_status(db, current_patient.id, status_filter)
    return BillListResponse(
        bills=[BillResponse.model_validate(bill) for bill in bills],
        outstanding_balance=get_outstanding_balance(db, current_patient.id),
        count=len(bills),
    )


@router.post("/payments", response_model=PaymentResponse)
async def pay_bill_route(
    payment: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_patient: Identity = Depends(require_patient),
    gateway: MockPaymentGateway = Depends(get_payment_gateway),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    mail_sender: MailSender = Depends(get_mail_sender),
):
    """Pay one of the caller's bills"""
    if not payment.bill_id or not payment.payment_method_id:
        raise ValidationException("Bill ID and payment method are required")

    receipt = await process_payment(
        db,
        payment.bill_id,
        current_patient,
        payment.payment_method_id,
        gateway,
        recorder,
        mail_sender,
        request,
    )
    return PaymentResponse(
        message="Payment processed successfully",
        payment_intent_id=receipt.payment_intent_id,
        bill=BillResponse.model_validate(receipt.bill),
    )


@router.post("/staff/bills", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill_route(
    bill_data: CreateBillRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_staff: Identity = Depends(require_staff),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Issue a new pending bill to a patient"""
    return create_bill(
        db,
        bill_data.patient_id,
        bill_data.amount,
        bill_data.description,
        bill_data.due_date,
        actor=current_staff,
        recorder=recorder,
        request=request,
    )


@router.post("/staff/bills/mark-overdue", response_model=MarkOverdueResponse)
async def mark_overdue_route(
    db: Session = Depends(get_db),
    current_staff: Identity = Depends(require_staff),
):
    """Run the overdue sweep now"""
    return MarkOverdueResponse(updated=mark_overdue_bills(db))
