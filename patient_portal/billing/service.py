"""
Billing Service - Bills, balances and payment processing.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..auth.email import MailSender
from ..core.audit_models import AuditAction
from ..core.audit_service import AuditRecorder
from ..core.permissions import Identity
from ..database import utcnow
from ..exceptions import NotFoundException
from ..patients.models import Patient
from .exceptions import (
    BillAlreadyPaidException,
    BillNotFoundException,
    PaymentDeclinedException,
    PaymentException,
)
from .gateway import MockPaymentGateway
from .models import OUTSTANDING_STATUSES, Bill, BillStatus

# Set up logging
logger = logging.getLogger(__name__)

PAID_PAYMENT_METHOD = "credit_card"


@dataclass
class PaymentReceipt:
    bill: Bill
    payment_intent_id: str


def get_patient_bills(db: Session, patient_id: str) -> List[Bill]:
    """All bills of a patient, newest first."""
    return (
        db.query(Bill)
        .filter(Bill.patient_id == patient_id)
        .order_by(Bill.created_at.desc())
        .all()
    )


def get_pending_bills(db: Session, patient_id: str) -> List[Bill]:
    """Pending bills of a patient, soonest due first."""
    return (
        db.query(Bill)
        .filter(Bill.patient_id == patient_id, Bill.status == BillStatus.PENDING)
        .order_by(Bill.due_date.asc())
        .all()
    )


def get_payment_history(db: Session, patient_id: str) -> List[Bill]:
    """Paid bills of a patient, most recent payment first."""
    return (
        db.query(Bill)
        .filter(Bill.patient_id == patient_id, Bill.status == BillStatus.PAID)
        .order_by(Bill.paid_at.desc())
        .all()
    )


def get_outstanding_balance(db: Session, patient_id: str) -> float:
    """
    Total still owed by a patient.

    Args:
        db: Database session
        patient_id: ID of the patient

    Returns:
        float: Sum of pending and overdue bill amounts
    """
    bills = (
        db.query(Bill)
        .filter(Bill.patient_id == patient_id, Bill.status.in_(OUTSTANDING_STATUSES))
        .all()
    )
    total = sum((Decimal(str(bill.amount)) for bill in bills), Decimal("0"))
    return float(total.quantize(Decimal("0.01")))


def get_bills_by_status(db: Session, patient_id: str, status: Optional[str] = None) -> List[Bill]:
    """
    Bills of a patient filtered the way the bills listing asks for them.

    ``pending`` and ``paid`` select the pending list and the payment history;
    any other value returns every bill.
    """
    if status == BillStatus.PENDING.value:
        return get_pending_bills(db, patient_id)
    if status == BillStatus.PAID.value:
        return get_payment_history(db, patient_id)
    return get_patient_bills(db, patient_id)


def create_bill(
    db: Session,
    patient_id: str,
    amount: float,
    description: Optional[str] = None,
    due_date: Optional[datetime] = None,
    actor: Optional[Identity] = None,
    recorder: Optional[AuditRecorder] = None,
    request: Optional[Request] = None,
) -> Bill:
    """
    Create a pending bill for a patient.

    When an actor and recorder are given the creation is audited against the
    patient; seeding passes neither.

    Raises:
        NotFoundException: If the patient does not exist
    """
    if not db.query(Patient.id).filter(Patient.id == patient_id).first():
        raise NotFoundException("Patient not found")

    bill = Bill(
        patient_id=patient_id,
        amount=Decimal(str(amount)).quantize(Decimal("0.01")),
        status=BillStatus.PENDING,
        description=description,
        due_date=due_date,
    )
    db.add(bill)
    db.commit()
    db.refresh(bill)
    logger.info(f"Bill {bill.id} of {bill.amount} created for patient {patient_id}")
    if actor and recorder:
        recorder.record_request(
            db,
            request,
            AuditAction.CREATE,
            actor,
            patient_id=patient_id,
            details={"billId": bill.id, "amount": float(bill.amount)},
        )
    return bill


def mark_overdue_bills(db: Session, now: Optional[datetime] = None) -> int:
    """
    Move pending bills whose due date has passed to overdue.

    Args:
        db: Database session
        now: Reference time (defaults to the current time)

    Returns:
        int: Number of bills updated
    """
    now = now or utcnow()
    updated = (
        db.query(Bill)
        .filter(Bill.status == BillStatus.PENDING, Bill.due_date < now)
        .update({Bill.status: BillStatus.OVERDUE, Bill.updated_at: now}, synchronize_session=False)
    )
    db.commit()
    logger.info(f"Overdue sweep marked {updated} bill(s) overdue")
    return updated


def _set_unpaid_bill(db: Session, bill_id: str, values: dict) -> int:
    """Update a bill unless it is already paid; returns the number of rows changed."""
    return (
        db.query(Bill)
        .filter(Bill.id == bill_id, Bill.status != BillStatus.PAID)
        .update(values, synchronize_session=False)
    )


async def process_payment(
    db: Session,
    bill_id: str,
    payer: Identity,
    payment_method_id: str,
    gateway: MockPaymentGateway,
    recorder: AuditRecorder,
    mail_sender: MailSender,
    request: Optional[Request] = None,
) -> PaymentReceipt:
    """
    Pay one of the payer's own bills.

    Every attempt is audited, whether or not it succeeds. A declined charge
    leaves the bill ``failed``; a later successful retry marks it ``paid``.

    Args:
        db: Database session
        bill_id: Bill to pay
        payer: Patient paying the bill
        payment_method_id: Card or payment method token
        gateway: Payment gateway to charge
        recorder: Audit recorder
        mail_sender: Sender of the payment confirmation
        request: FastAPI request object for audit logging

    Returns:
        PaymentReceipt: The paid bill and the gateway's payment intent id

    Raises:
        BillNotFoundException: If the bill does not exist or belongs to someone else
        BillAlreadyPaidException: If the bill has already been paid
        PaymentDeclinedException: If the gateway rejects the charge
    """
    try:
        bill = (
            db.query(Bill)
            .filter(Bill.id == bill_id, Bill.patient_id == payer.id)
            .first()
        )
        if not bill:
            raise BillNotFoundException()
        if bill.status == BillStatus.PAID:
            raise BillAlreadyPaidException()

        amount_cents = int((Decimal(str(bill.amount)) * 100).quantize(Decimal("1")))
        result = await gateway.charge(
            amount_cents,
            payment_method_id,
            metadata={
                "billId": bill.id,
                "patientId": payer.id,
                "description": bill.description or f"Bill payment #{bill.id[:8]}",
            },
        )
        if not result.success:
            _set_unpaid_bill(db, bill.id, {Bill.status: BillStatus.FAILED})
            db.commit()
            raise PaymentDeclinedException(result.error or PaymentDeclinedException.default_detail)

        claimed = _set_unpaid_bill(
            db,
            bill.id,
            {
                Bill.status: BillStatus.PAID,
                Bill.payment_method: PAID_PAYMENT_METHOD,
                Bill.payment_reference: result.payment_intent_id,
                Bill.paid_at: utcnow(),
            },
        )
        if not claimed:
            db.rollback()
            logger.error(
                f"Bill {bill_id} was paid by another request while charge "
                f"{result.payment_intent_id} was in flight"
            )
            raise BillAlreadyPaidException()
        db.commit()
    except PaymentException as e:
        logger.warning(f"Payment of bill {bill_id} by patient {payer.id} failed: {e.detail}")
        recorder.record_request(
            db,
            request,
            AuditAction.PAYMENT,
            payer,
            patient_id=payer.id,
            details={"billId": bill_id, "error": e.detail, "status": "failed"},
        )
        raise

    db.refresh(bill)
    logger.info(f"Bill {bill.id} paid by patient {payer.id}")

    recorder.record_request(
        db,
        request,
        AuditAction.PAYMENT,
        payer,
        patient_id=payer.id,
        details={"billId": bill.id, "amount": float(bill.amount), "paymentIntentId": result.payment_intent_id},
    )

    sent = await mail_sender.send_payment_confirmation(payer.email, bill.amount, bill.id)
    if not sent:
        logger.warning(f"Payment confirmation for bill {bill.id} was not delivered")

    return PaymentReceipt(bill=bill, payment_intent_id=result.payment_intent_id)
