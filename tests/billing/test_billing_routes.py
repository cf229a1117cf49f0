"""
Tests for the bills, payments and staff billing endpoints.
"""
from datetime import timedelta

from patient_portal.billing.models import Bill, BillStatus
from patient_portal.core.audit_models import AuditAction, AuditLog
from patient_portal.database import utcnow


def test_list_own_bills(client, patient, make_patient, make_bill, patient_headers):
    make_bill(patient, "120.00")
    make_bill(patient, "80.00", status=BillStatus.PAID, paid_at=utcnow())
    make_bill(make_patient(email="other@example.com"), "999.00")

    response = client.get("/bills", headers=patient_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["outstandingBalance"] == 120.0
    assert {bill["patientId"] for bill in data["bills"]} == {patient.id}
    assert {bill["amount"] for bill in data["bills"]} == {120.0, 80.0}


def test_list_bills_by_status(client, patient, make_bill, patient_headers):
    make_bill(patient, "120.00")
    make_bill(patient, "80.00", status=BillStatus.PAID, paid_at=utcnow())

    pending = client.get("/bills", params={"status": "pending"}, headers=patient_headers).json()
    paid = client.get("/bills", params={"status": "paid"}, headers=patient_headers).json()

    assert [bill["status"] for bill in pending["bills"]] == ["pending"]
    assert [bill["status"] for bill in paid["bills"]] == ["paid"]
    assert pending["outstandingBalance"] == paid["outstandingBalance"] == 120.0


def test_pay_bill(client, db, patient, make_bill, patient_headers, mail_sender):
    bill = make_bill(patient, "150.00")

    response = client.post(
        "/payments",
        json={"billId": bill.id, "paymentMethodId": "pm_card_visa"},
        headers=patient_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Payment processed successfully"
    assert data["paymentIntentId"].startswith("pi_mock_")
    assert data["bill"]["status"] == "paid"
    assert data["bill"]["paymentMethod"] == "credit_card"
    assert len(mail_sender.payment_confirmations) == 1
    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.PAYMENT).count() == 1


def test_pay_bill_missing_fields(client, db, patient_headers):
    response = client.post("/payments", json={"billId": "abc"}, headers=patient_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Bill ID and payment method are required"}
    assert db.query(AuditLog).count() == 0


def test_pay_declined(client, db, patient, make_bill, patient_headers):
    bill = make_bill(patient)

    response = client.post(
        "/payments",
        json={"billId": bill.id, "paymentMethodId": "pm_card_declined"},
        headers=patient_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Your card was declined"}
    entry = db.query(AuditLog).one()
    assert entry.action == AuditAction.PAYMENT
    assert entry.details["status"] == "failed"


def test_pay_other_patients_bill(client, make_patient, make_bill, patient, patient_headers):
    bill = make_bill(make_patient(email="other@example.com"))

    response = client.post(
        "/payments",
        json={"billId": bill.id, "paymentMethodId": "pm_card_visa"},
        headers=patient_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Bill not found"}


def test_pay_already_paid_bill(client, patient, make_bill, patient_headers):
    bill = make_bill(patient, status=BillStatus.PAID, paid_at=utcnow())

    response = client.post(
        "/payments",
        json={"billId": bill.id, "paymentMethodId": "pm_card_visa"},
        headers=patient_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Bill already paid"}


def test_staff_creates_bill(client, db, patient, staff, staff_headers):
    due_date = (utcnow() + timedelta(days=30)).isoformat()

    response = client.post(
        "/staff/bills",
        json={"patientId": patient.id, "amount": 42.5, "description": "X-ray", "dueDate": due_date},
        headers=staff_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["amount"] == 42.5

    entry = db.query(AuditLog).one()
    assert entry.action == AuditAction.CREATE
    assert entry.actor_id == staff.id
    assert entry.patient_id == patient.id


def test_staff_create_bill_validation(client, patient, staff_headers):
    response = client.post("/staff/bills", json={"patientId": patient.id, "amount": 0}, headers=staff_headers)
    assert response.status_code == 400


def test_staff_create_bill_unknown_patient(client, staff_headers):
    response = client.post("/staff/bills", json={"patientId": "missing", "amount": 10}, headers=staff_headers)
    assert response.status_code == 404


def test_mark_overdue_endpoint(client, db, patient, make_bill, staff_headers):
    bill = make_bill(patient, due_in_days=-3)
    make_bill(patient, due_in_days=3)

    response = client.post("/staff/bills/mark-overdue", headers=staff_headers)

    assert response.status_code == 200
    assert response.json() == {"updated": 1}
    db.expire_all()
    assert db.get(Bill, bill.id).status == BillStatus.OVERDUE
