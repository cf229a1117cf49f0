"""
Bootstrap utilities for demo data.
Seeds providers, staff, patients and bills into an empty store on start-up
when SEED_DEMO_DATA is enabled.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from ..accounts.service import subtract_years
from ..auth.models import Provider, Staff
from ..billing.models import Bill, BillStatus
from ..database import utcnow
from ..patients.models import Patient
from .security import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_PROVIDERS = [
    {
        "email": "dr.smith@hospital.com",
        "first_name": "John",
        "last_name": "Smith",
        "role": "Doctor",
        "permissions": ["view_patients", "update_patients", "view_bills"],
    },
    {
        "email": "dr.jones@hospital.com",
        "first_name": "Sarah",
        "last_name": "Jones",
        "role": "Nurse Practitioner",
        "permissions": ["view_patients", "update_patients"],
    },
]

DEMO_STAFF = [
    {
        "email": "admin@hospital.com",
        "first_name": "Admin",
        "last_name": "User",
        "role": "Administrator",
        "permissions": ["view_patients", "inactivate_accounts", "view_reports"],
    },
]

DEMO_PATIENTS = [
    {
        "email": "john.doe@email.com",
        "first_name": "John",
        "last_name": "Doe",
        "date_of_birth": date(1985, 5, 15),
        "phone": "555-0101",
        "address": "123 Main St, Anytown, USA",
        "vitals": {
            "bloodPressure": "120/80",
            "heartRate": 72,
            "temperature": 98.6,
            "weight": 180,
            "height": 70,
            "respiratoryRate": 16,
            "oxygenSaturation": 98,
        },
        "visit_summary": "Annual physical examination. Patient reports feeling well overall.",
        "diagnosis": "Healthy adult, no significant medical issues",
        "treatment": "Continue current lifestyle, schedule follow-up in 1 year",
        "lab_results": [
            {
                "testName": "Complete Blood Count",
                "result": "Normal",
                "date": "2024-01-15",
                "normalRange": "Within limits",
            },
        ],
        "medications": [
            {
                "name": "Multivitamin",
                "dosage": "1 tablet",
                "frequency": "Once daily",
                "startDate": "2023-01-01",
                "prescribedBy": "Dr. Smith",
            },
        ],
        "bills": [
            {"amount": "250.00", "status": BillStatus.PAID, "description": "Annual physical", "due_in_days": -30},
        ],
    },
    {
        "email": "jane.smith@email.com",
        "first_name": "Jane",
        "last_name": "Smith",
        "date_of_birth": date(1990, 8, 22),
        "phone": "555-0102",
        "address": "456 Oak Ave, Somewhere, USA",
        "diagnosis": "Hypertension, well controlled",
        "treatment": "Continue current medication, low sodium diet",
        "medications": [
            {
                "name": "Lisinopril",
                "dosage": "10mg",
                "frequency": "Once daily",
                "startDate": "2023-06-01",
                "prescribedBy": "Dr. Smith",
            },
        ],
        "bills": [
            {"amount": "150.00", "status": BillStatus.PENDING, "description": "Follow-up visit", "due_in_days": 30},
        ],
    },
    {
        "email": "mike.johnson@email.com",
        "first_name": "Mike",
        "last_name": "Johnson",
        "date_of_birth": date(1975, 3, 10),
        "phone": "555-0103",
        "address": "789 Pine Rd, Elsewhere, USA",
        "diagnosis": "Type 2 Diabetes Mellitus, newly diagnosed",
        "treatment": "Start metformin, dietary changes, exercise program",
        "bills": [
            {"amount": "500.00", "status": BillStatus.PENDING, "description": "Initial consultation", "due_in_days": 14},
        ],
    },
]

# Last accessed eight years ago so that it shows up in the default report
DORMANT_PATIENT = {
    "email": "old.patient@email.com",
    "first_name": "Old",
    "last_name": "Patient",
    "date_of_birth": date(1960, 1, 1),
    "phone": "555-0199",
    "address": "999 Old St, Pastville, USA",
}


def demo_data_exists(db: Session) -> bool:
    """
    Check if any provider account exists in the database.

    Args:
        db: Database session

    Returns:
        bool: True if the store has already been seeded or used
    """
    return db.query(Provider).count() > 0


def seed_demo_data(db: Session) -> bool:
    """
    Create the demo accounts and bills.

    Args:
        db: Database session

    Returns:
        bool: True if the data was created, False if seeding failed
    """
    now = utcnow()
    password_hash = hash_password(DEMO_PASSWORD)
    try:
        for data in DEMO_PROVIDERS:
            db.add(Provider(password_hash=password_hash, **data))
        for data in DEMO_STAFF:
            db.add(Staff(password_hash=password_hash, **data))

        for data in DEMO_PATIENTS:
            data = dict(data)
            bills = data.pop("bills", [])
            patient = Patient(
                password_hash=password_hash,
                is_active=True,
                is_verified=True,
                last_access_date=now,
                **data,
            )
            for bill in bills:
                due_date = now + timedelta(days=bill["due_in_days"])
                patient.bills.append(
                    Bill(
                        amount=Decimal(bill["amount"]),
                        status=bill["status"],
                        description=bill["description"],
                        due_date=due_date,
                        payment_method="credit_card" if bill["status"] == BillStatus.PAID else None,
                        paid_at=due_date - timedelta(days=3) if bill["status"] == BillStatus.PAID else None,
                    )
                )
            db.add(patient)

        db.add(
            Patient(
                password_hash=password_hash,
                is_active=True,
                is_verified=True,
                last_access_date=subtract_years(now, 8),
                created_at=subtract_years(now, 10),
                **DORMANT_PATIENT,
            )
        )
        db.commit()
    except Exception as e:
        logger.error(f"Failed to seed demo data: {str(e)}")
        db.rollback()
        return False

    logger.info(
        f"Demo data seeded: {len(DEMO_PROVIDERS)} providers, {len(DEMO_STAFF)} staff, "
        f"{len(DEMO_PATIENTS) + 1} patients"
    )
    return True


def seed_demo_data_if_needed(db: Session) -> None:
    """
    Seed demo data unless the store already holds accounts.
    This function should be called during application startup.

    Args:
        db: Database session
    """
    if demo_data_exists(db):
        logger.info("Existing accounts found. Demo seed not needed.")
        return

    logger.info("Empty store. Seeding demo data...")
    if not seed_demo_data(db):
        logger.warning("Demo seed skipped.")
