"""
Test configuration for the Unified Patient Manager API.
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-signing-tokens")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ.pop("MAIL_SERVER", None)

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from patient_portal.auth.dependencies import get_token_service
from patient_portal.auth.email import get_mail_sender
from patient_portal.auth.models import Provider, Staff
from patient_portal.billing.models import Bill, BillStatus
from patient_portal.core.permissions import ActorRole, Identity
from patient_portal.core.security import hash_password
from patient_portal.database import get_db, utcnow
from patient_portal.main import app
from patient_portal.models import Base
from patient_portal.patients.models import Patient

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Password123!"


class FakeMailSender:
    """Records outgoing mail instead of talking to an SMTP server."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.verification_emails = []
        self.payment_confirmations = []

    async def send_verification_email(self, email, token):
        self.verification_emails.append({"email": email, "token": token})
        return self.deliver

    async def send_payment_confirmation(self, email, amount, bill_id):
        self.payment_confirmations.append({"email": email, "amount": amount, "bill_id": bill_id})
        return self.deliver


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def mail_sender():
    return FakeMailSender()


@pytest.fixture(scope="function")
def client(db, mail_sender):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    # Override the get_db dependency and the mail transport
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_sender] = lambda: mail_sender

    # Create test client
    with TestClient(app) as client:
        yield client

    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def token_service():
    return get_token_service()


@pytest.fixture
def make_provider(db):
    def _make_provider(email="dr.house@hospital.org", password=DEFAULT_PASSWORD, is_active=True, **fields):
        provider = Provider(
            email=email,
            password_hash=hash_password(password),
            first_name=fields.pop("first_name", "Gregory"),
            last_name=fields.pop("last_name", "House"),
            is_active=is_active,
            permissions=["view_patients", "update_patients"],
            **fields,
        )
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider
    return _make_provider


@pytest.fixture
def make_staff(db):
    def _make_staff(email="admin@hospital.org", password=DEFAULT_PASSWORD, is_active=True, **fields):
        staff = Staff(
            email=email,
            password_hash=hash_password(password),
            first_name=fields.pop("first_name", "Alice"),
            last_name=fields.pop("last_name", "Admin"),
            is_active=is_active,
            permissions=["view_patients", "inactivate_accounts", "view_reports"],
            **fields,
        )
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff
    return _make_staff


@pytest.fixture
def make_patient(db):
    def _make_patient(
        email="john.doe@example.com",
        password=DEFAULT_PASSWORD,
        first_name="John",
        last_name="Doe",
        is_active=True,
        is_verified=True,
        **fields,
    ):
        patient = Patient(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
            is_verified=is_verified,
            **fields,
        )
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient
    return _make_patient


@pytest.fixture
def make_bill(db):
    def _make_bill(patient, amount="100.00", status=BillStatus.PENDING, due_in_days=30, **fields):
        bill = Bill(
            patient_id=patient.id,
            amount=Decimal(amount),
            status=status,
            due_date=utcnow() + timedelta(days=due_in_days),
            **fields,
        )
        db.add(bill)
        db.commit()
        db.refresh(bill)
        return bill
    return _make_bill


@pytest.fixture
def auth_headers(token_service):
    """Build an Authorization header for an account of the given role."""
    def _auth_headers(account, role: ActorRole):
        identity = Identity(id=account.id, email=account.email, role=role)
        return {"Authorization": f"Bearer {token_service.issue(identity)}"}
    return _auth_headers


@pytest.fixture
def provider(make_provider):
    return make_provider()


@pytest.fixture
def staff(make_staff):
    return make_staff()


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def provider_headers(provider, auth_headers):
    return auth_headers(provider, ActorRole.PROVIDER)


@pytest.fixture
def staff_headers(staff, auth_headers):
    return auth_headers(staff, ActorRole.STAFF)


@pytest.fixture
def patient_headers(patient, auth_headers):
    return auth_headers(patient, ActorRole.PATIENT)
