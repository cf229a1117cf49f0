"""
Tests for the billing service.
"""
import asyncio
from datetime import timedelta

import pytest

from patient_portal.billing.exceptions import (
    BillAlreadyPaidException,
    BillNotFoundException,
    PaymentDeclinedException,
)
from patient_portal.billing.gateway import MockPaymentGateway
from patient_portal.billing.models import Bill, BillStatus
from patient_portal.billing.service import (
    create_bill,
    get_bills_by_status,
    get_outstanding_balance,
    get_patient_bills,
    get_payment_history,
    get_pending_bills,
    mark_overdue_bills,
    process_payment,
)
from patient_portal.core.audit_models import AuditAction, AuditLog
from patient_portal.core.audit_service import AuditRecorder
from patient_portal.core.permissions import ActorRole, Identity
from patient_portal.database import utcnow
from patient_portal.exceptions import NotFoundException


@pytest.fixture
def payer(patient):
    return Identity(id=patient.id, email=patient.email, role=ActorRole.PATIENT)


def pay(db, bill_id, payer, mail_sender, payment_method_id="pm_card_visa"):
    return asyncio.run(
        process_payment(
            db, bill_id, payer, payment_method_id, MockPaymentGateway(), AuditRecorder(), mail_sender
        )
    )


def test_bill_listings(db, patient, make_bill):
    later = make_bill(patient, "50.00", due_in_days=30)
    sooner = make_bill(patient, "75.00", due_in_days=5)
    paid = make_bill(patient, "20.00", status=BillStatus.PAID, paid_at=utcnow())

    assert set(get_patient_bills(db, patient.id)) == {later, sooner, paid}
    assert get_pending_bills(db, patient.id) == [sooner, later]
    assert get_payment_history(db, patient.id) == [paid]
    assert get_bills_by_status(db, patient.id, "pending") == [sooner, later]
    assert get_bills_by_status(db, patient.id, "paid") == [paid]
    assert len(get_bills_by_status(db, patient.id, "anything")) == 3


def test_bills_are_scoped_to_patient(db, patient, make_patient, make_bill):
    other = make_patient(email="other@example.com")
    make_bill(other, "999.00")

    assert get_patient_bills(db, patient.id) == []
    assert get_outstanding_balance(db, patient.id) == 0.0


def test_outstanding_balance_counts_pending_and_overdue(db, patient, make_bill):
    make_bill(patient, "100.10")
    make_bill(patient, "50.25", status=BillStatus.OVERDUE)
    make_bill(patient, "500.00", status=BillStatus.PAID)
    make_bill(patient, "30.00", status=BillStatus.FAILED)

    assert get_outstanding_balance(db, patient.id) == 150.35


def test_create_bill(db, patient):
    bill = create_bill(db, patient.id, 125.5, "Lab work", utcnow() + timedelta(days=30))

    assert bill.status == BillStatus.PENDING
    assert float(bill.amount) == 125.5
    assert db.query(AuditLog).count() == 0


def test_create_bill_for_unknown_patient(db):
    with pytest.raises(NotFoundException):
        create_bill(db, "missing", 10)


def test_mark_overdue_bills(db, patient, make_bill):
    past_due = make_bill(patient, due_in_days=-1)
    future = make_bill(patient, due_in_days=10)
    paid_past_due = make_bill(patient, status=BillStatus.PAID, due_in_days=-10)

    assert mark_overdue_bills(db) == 1

    db.expire_all()
    assert past_due.status == BillStatus.OVERDUE
    assert future.status == BillStatus.PENDING
    assert paid_past_due.status == BillStatus.PAID
    assert mark_overdue_bills(db) == 0


def test_successful_payment(db, patient, payer, make_bill, mail_sender):
    bill = make_bill(patient, "150.00")

    receipt = pay(db, bill.id, payer, mail_sender)

    assert receipt.payment_intent_id.startswith("pi_mock_")
    assert receipt.bill.status == BillStatus.PAID
    assert receipt.bill.payment_method == "credit_card"
    assert receipt.bill.paid_at is not None

    entry = db.query(AuditLog).one()
    assert entry.action == AuditAction.PAYMENT
    assert entry.actor_id == patient.id
    assert entry.patient_id == patient.id
    assert entry.details["amount"] == 150.0

    assert mail_sender.payment_confirmations[0]["bill_id"] == bill.id


def test_paying_another_patients_bill_is_not_found(db, payer, make_patient, make_bill, mail_sender):
    other = make_patient(email="other@example.com")
    bill = make_bill(other)

    with pytest.raises(BillNotFoundException):
        pay(db, bill.id, payer, mail_sender)

    db.refresh(bill)
    assert bill.status == BillStatus.PENDING
    entry = db.query(AuditLog).one()
    assert entry.details == {"billId": bill.id, "error": "Bill not found", "status": "failed"}


def test_paying_twice_is_rejected(db, patient, payer, make_bill, mail_sender):
    bill = make_bill(patient)
    pay(db, bill.id, payer, mail_sender)

    with pytest.raises(BillAlreadyPaidException):
        pay(db, bill.id, payer, mail_sender)

    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.PAYMENT).count() == 2
    assert len(mail_sender.payment_confirmations) == 1


def test_declined_payment_marks_bill_failed_and_retry_succeeds(db, patient, payer, make_bill, mail_sender):
    bill = make_bill(patient)

    with pytest.raises(PaymentDeclinedException):
        pay(db, bill.id, payer, mail_sender, "pm_card_declined")

    db.refresh(bill)
    assert bill.status == BillStatus.FAILED
    assert mail_sender.payment_confirmations == []

    receipt = pay(db, bill.id, payer, mail_sender)
    assert receipt.bill.status == BillStatus.PAID


def test_overdue_bill_can_be_paid(db, patient, payer, make_bill, mail_sender):
    bill = make_bill(patient, status=BillStatus.OVERDUE, due_in_days=-5)
    assert pay(db, bill.id, payer, mail_sender).bill.status == BillStatus.PAID


def test_payment_survives_confirmation_email_failure(db, patient, payer, make_bill, mail_sender):
    mail_sender.deliver = False
    bill = make_bill(patient)

    assert pay(db, bill.id, payer, mail_sender).bill.status == BillStatus.PAID


class ConcurrentPaymentGateway(MockPaymentGateway):
    """Settles the bill through another request while the charge is in flight."""

    def __init__(self, db):
        self.db = db

    async def charge(self, amount_cents, payment_method_id, metadata=None):
        result = await super().charge(amount_cents, payment_method_id, metadata)
        self.db.query(Bill).filter(Bill.id == metadata["billId"]).update(
            {Bill.status: BillStatus.PAID, Bill.payment_reference: "pi_other_request"},
            synchronize_session=False,
        )
        self.db.commit()
        return result


def test_bill_paid_during_charge_is_not_paid_again(db, patient, payer, make_bill, mail_sender):
    bill = make_bill(patient)

    with pytest.raises(BillAlreadyPaidException):
        asyncio.run(
            process_payment(
                db, bill.id, payer, "pm_card_visa", ConcurrentPaymentGateway(db), AuditRecorder(), mail_sender
            )
        )

    db.refresh(bill)
    assert bill.status == BillStatus.PAID
    assert bill.payment_reference == "pi_other_request"
    assert mail_sender.payment_confirmations == []
    entry = db.query(AuditLog).one()
    assert entry.details == {"billId": bill.id, "error": "Bill already paid", "status": "failed"}


def test_decline_does_not_overwrite_a_paid_bill(db, patient, payer, make_bill, mail_sender):
    bill = make_bill(patient)

    with pytest.raises(PaymentDeclinedException):
        asyncio.run(
            process_payment(
                db, bill.id, payer, "pm_card_declined", ConcurrentPaymentGateway(db), AuditRecorder(), mail_sender
            )
        )

    db.refresh(bill)
    assert bill.status == BillStatus.PAID
