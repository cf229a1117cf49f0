"""
Tests for the demo data seed.
"""
from patient_portal.accounts.service import get_inactive_accounts
from patient_portal.auth.models import Provider, Staff
from patient_portal.billing.models import Bill
from patient_portal.core.bootstrap import seed_demo_data_if_needed
from patient_portal.patients.models import Patient


def test_seed_populates_empty_store(db):
    seed_demo_data_if_needed(db)

    assert db.query(Provider).count() == 2
    assert db.query(Staff).count() == 1
    assert db.query(Patient).count() == 4
    assert db.query(Bill).count() == 3
    assert all(patient.is_verified for patient in db.query(Patient))


def test_seeded_dormant_patient_appears_in_report(db):
    seed_demo_data_if_needed(db)

    assert [patient.email for patient in get_inactive_accounts(db, 7)] == ["old.patient@email.com"]


def test_seed_is_skipped_when_accounts_exist(db, provider):
    seed_demo_data_if_needed(db)

    assert db.query(Provider).count() == 1
    assert db.query(Patient).count() == 0
