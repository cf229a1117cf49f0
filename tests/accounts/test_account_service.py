"""
Tests for the account service: search, inactivation and the inactivity report.
"""
from datetime import datetime, timedelta, timezone

import pytest

from patient_portal.accounts.exceptions import AlreadyInactiveException, PatientNotFoundException
from patient_portal.accounts.service import (
    build_inactive_accounts_report,
    get_inactive_accounts,
    inactivate_account,
    search_patients,
    subtract_years,
)
from patient_portal.core.audit_models import AuditAction, AuditLog
from patient_portal.core.audit_service import AuditRecorder
from patient_portal.core.permissions import ActorRole, Identity
from patient_portal.database import utcnow


@pytest.fixture
def staff_identity(staff):
    return Identity(id=staff.id, email=staff.email, role=ActorRole.STAFF)


def test_subtract_years():
    moment = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
    assert subtract_years(moment, 7) == datetime(2019, 10, 19, 8, 30, tzinfo=timezone.utc)


def test_subtract_years_from_leap_day():
    assert subtract_years(datetime(2024, 2, 29), 1) == datetime(2023, 2, 28)
    assert subtract_years(datetime(2024, 2, 29), 4) == datetime(2020, 2, 29)


def test_empty_query_returns_nothing(db, make_patient):
    make_patient(email="a@example.com")
    make_patient(email="b@example.com")

    assert search_patients(db, "") == []
    assert search_patients(db, "   ") == []
    assert search_patients(db, None) == []


def test_search_matches_name_and_email_case_insensitively(db, make_patient):
    make_patient(email="jane.doe@example.com", first_name="Jane", last_name="Doe")
    make_patient(email="jdoe42@example.com", first_name="John", last_name="Smith")
    make_patient(email="doris@example.com", first_name="Doris", last_name="Brown")
    make_patient(email="kim@example.com", first_name="Kim", last_name="Adoetti")

    results = search_patients(db, "DOE")

    assert [patient.last_name for patient in results] == ["Adoetti", "Doe", "Smith"]


@pytest.mark.parametrize("query", ["%", "_", "%%", "a%e"])
def test_like_wildcards_match_literally(db, make_patient, query):
    make_patient(email="a@example.com")
    make_patient(email="b@example.com")

    assert search_patients(db, query) == []


def test_search_finds_literal_underscore(db, make_patient):
    make_patient(email="a@example.com")
    make_patient(email="under_score@example.com", last_name="Score")

    assert [patient.last_name for patient in search_patients(db, "_")] == ["Score"]


def test_search_includes_inactive_accounts(db, make_patient):
    make_patient(email="gone@example.com", last_name="Gone", is_active=False)
    assert [patient.last_name for patient in search_patients(db, "gone")] == ["Gone"]


def test_search_matches_exact_id(db, make_patient):
    target = make_patient(email="target@example.com")
    make_patient(email="other@example.com")

    assert search_patients(db, target.id) == [target]
    assert search_patients(db, target.id[:8]) == []


def test_search_respects_limit(db, make_patient):
    for index in range(5):
        make_patient(email=f"smith{index}@example.com", last_name="Smith")

    assert len(search_patients(db, "smith", limit=3)) == 3


def test_inactivate_account(db, patient, staff_identity):
    result = inactivate_account(db, patient.id, staff_identity, AuditRecorder(), reason="fraud")

    assert result.is_active is False
    db.refresh(patient)
    assert patient.is_active is False

    entry = db.query(AuditLog).one()
    assert entry.action == AuditAction.INACTIVATE
    assert entry.actor_id == staff_identity.id
    assert entry.actor_type == ActorRole.STAFF
    assert entry.patient_id == patient.id
    assert entry.details == {
        "reason": "fraud",
        "patientEmail": patient.email,
        "patientName": "John Doe",
    }


def test_inactivate_without_reason_uses_placeholder(db, patient, staff_identity):
    inactivate_account(db, patient.id, staff_identity, AuditRecorder())

    assert db.query(AuditLog).one().details["reason"] == "No reason provided"


def test_inactivate_twice_is_rejected_and_audited_once(db, patient, staff_identity):
    recorder = AuditRecorder()
    inactivate_account(db, patient.id, staff_identity, recorder, reason="fraud")

    with pytest.raises(AlreadyInactiveException):
        inactivate_account(db, patient.id, staff_identity, recorder, reason="fraud")

    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.INACTIVATE).count() == 1


def test_inactivate_unknown_patient(db, staff_identity):
    with pytest.raises(PatientNotFoundException):
        inactivate_account(db, "missing", staff_identity, AuditRecorder())
    assert db.query(AuditLog).count() == 0


def test_inactive_accounts_threshold(db, make_patient):
    now = utcnow()
    eight_years = make_patient(email="eight@example.com", last_access_date=subtract_years(now, 8))
    make_patient(email="six@example.com", last_access_date=subtract_years(now, 6))
    make_patient(email="recent@example.com", last_access_date=now - timedelta(days=1))

    assert get_inactive_accounts(db, 7, now) == [eight_years]


def test_never_accessed_accounts_use_creation_date(db, make_patient):
    now = utcnow()
    old_signup = make_patient(email="old-signup@example.com", created_at=subtract_years(now, 9))
    make_patient(email="new-signup@example.com")

    assert get_inactive_accounts(db, 7, now) == [old_signup]


def test_inactive_accounts_order_never_accessed_first(db, make_patient):
    now = utcnow()
    ten_years = make_patient(email="ten@example.com", last_access_date=subtract_years(now, 10))
    never = make_patient(email="never@example.com", created_at=subtract_years(now, 12))
    eight_years = make_patient(email="eight@example.com", last_access_date=subtract_years(now, 8))

    assert get_inactive_accounts(db, 7, now) == [never, ten_years, eight_years]


def test_inactive_report_statistics(db, make_patient):
    now = utcnow()
    make_patient(email="never@example.com", first_name="Nora", last_name="Never", created_at=subtract_years(now, 12))
    make_patient(email="ten@example.com", last_access_date=subtract_years(now, 10))
    make_patient(email="recent@example.com", last_access_date=now)

    report = build_inactive_accounts_report(db, 7, now)

    assert report.statistics.total_inactive == 2
    assert report.statistics.never_accessed == 1
    assert report.statistics.oldest_account.email == "never@example.com"
    assert report.statistics.oldest_account.name == "Nora Never"
    assert report.criteria.minimum_years == 7
    assert report.criteria.cutoff_date == subtract_years(now, 7)


def test_inactive_report_with_no_accounts(db):
    report = build_inactive_accounts_report(db, 7)

    assert report.accounts == []
    assert report.statistics.total_inactive == 0
    assert report.statistics.oldest_account is None
