"""
Authentication service layer for business logic.
"""
import logging
from typing import Dict, Optional, Tuple, Type, Union

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.audit_models import AuditAction
from ..core.audit_service import AuditRecorder
from ..core.permissions import ActorRole, Identity
from ..core.security import (
    TokenService,
    generate_verification_token,
    hash_password,
    verify_password,
)
from ..database import utcnow
from ..exceptions import ValidationException
from ..patients.models import Patient
from .email import MailSender
from .exceptions import (
    AccountInactiveException,
    EmailAlreadyExistsException,
    EmailNotVerifiedException,
    InvalidCredentialsException,
    MissingCredentialsException,
    VerificationTokenInvalidException,
)
from .models import Provider, Staff
from .schemas import PatientRegistration

# Set up logging
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

Account = Union[Provider, Patient, Staff]

ACCOUNT_MODELS: Dict[ActorRole, Type[Account]] = {
    ActorRole.PROVIDER: Provider,
    ActorRole.PATIENT: Patient,
    ActorRole.STAFF: Staff,
}


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def find_account_by_email(db: Session, role: ActorRole, email: str) -> Optional[Account]:
    """
    Look up an account of the given kind by email (case-insensitive).

    Args:
        db: Database session
        role: Which account table to search
        email: Email address as typed by the user

    Returns:
        The account, or None
    """
    model = ACCOUNT_MODELS[role]
    return db.query(model).filter(model.email == normalize_email(email)).first()


async def register_patient(
    db: Session,
    registration: PatientRegistration,
    mail_sender: MailSender,
    recorder: AuditRecorder,
    request: Optional[Request] = None,
) -> Patient:
    """
    Register a new patient and send the verification email.

    The account starts active but unverified; login is refused until the
    emailed token is confirmed. A failed email does not fail registration.

    Args:
        db: Database session
        registration: Registration data
        mail_sender: Mail sender for the verification link
        recorder: Audit recorder
        request: FastAPI request object for audit logging

    Returns:
        Patient: The created patient

    Raises:
        ValidationException: If a required field is blank or the password is too short
        EmailAlreadyExistsException: If email already exists
    """
    email = normalize_email(registration.email)
    first_name = registration.first_name.strip()
    last_name = registration.last_name.strip()

    if not email or not registration.password or not first_name or not last_name:
        raise ValidationException("Email, password, first name, and last name are required")

    if len(registration.password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if find_account_by_email(db, ActorRole.PATIENT, email):
        logger.warning(f"Registration failed: Email {email} already registered")
        raise EmailAlreadyExistsException()

    patient = Patient(
        email=email,
        password_hash=hash_password(registration.password),
        first_name=first_name,
        last_name=last_name,
        date_of_birth=registration.date_of_birth,
        phone=registration.phone or None,
        address=registration.address or None,
        is_active=True,
        is_verified=False,
        verification_token=generate_verification_token(),
    )

    db.add(patient)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Registration failed: Email {email} registered concurrently")
        raise EmailAlreadyExistsException()
    db.refresh(patient)
    logger.info(f"Patient account created: {patient.id}")

    recorder.record_request(
        db,
        request,
        AuditAction.CREATE,
        Identity(id=patient.id, email=patient.email, role=ActorRole.PATIENT),
        patient_id=patient.id,
        details={"event": "self_registration"},
    )

    sent = await mail_sender.send_verification_email(patient.email, patient.verification_token)
    if not sent:
        logger.warning(f"Verification email for patient {patient.id} was not delivered")

    return patient


def verify_email(db: Session, token: str) -> Patient:
    """
    Mark the unverified patient holding ``token`` as verified.

    Args:
        db: Database session
        token: Verification token from the emailed link

    Returns:
        Patient: The verified patient

    Raises:
        ValidationException: If the token is blank
        VerificationTokenInvalidException: If no unverified patient holds the token
    """
    token = (token or "").strip()
    if not token:
        raise ValidationException("Verification token is required")

    patient = (
        db.query(Patient)
        .filter(Patient.verification_token == token, Patient.is_verified.is_(False))
        .first()
    )
    if not patient:
        logger.warning("Verification failed: unknown or used token")
        raise VerificationTokenInvalidException()

    patient.is_verified = True
    patient.verification_token = None
    db.commit()
    db.refresh(patient)
    logger.info(f"Email verified for patient {patient.id}")
    return patient


def login_account(
    db: Session,
    role: ActorRole,
    email: Optional[str],
    password: Optional[str],
    token_service: TokenService,
    recorder: AuditRecorder,
    request: Optional[Request] = None,
) -> Tuple[str, Account]:
    """
    Authenticate an account of the given kind and issue an access token.

    Args:
        db: Database session
        role: Which kind of account is logging in
        email: Email address
        password: Plain text password
        token_service: Token issuer
        recorder: Audit recorder
        request: FastAPI request object for audit logging

    Returns:
        Tuple of (token, account)

    Raises:
        MissingCredentialsException: If email or password is missing
        InvalidCredentialsException: If the account is unknown or the password wrong
        AccountInactiveException: If the account has been deactivated
        EmailNotVerifiedException: If a patient has not verified their email
    """
    if not email or not password:
        raise MissingCredentialsException()

    account = find_account_by_email(db, role, email)
    if not account or not verify_password(password, account.password_hash):
        logger.warning(f"{role.user_type} login failed: Invalid credentials for {normalize_email(email)}")
        raise InvalidCredentialsException()

    if not account.is_active:
        logger.warning(f"{role.user_type} login refused: account {account.id} is deactivated")
        raise AccountInactiveException()

    if role is ActorRole.PATIENT:
        if not account.is_verified:
            logger.info(f"Patient login refused: account {account.id} is unverified")
            raise EmailNotVerifiedException()
        account.last_access_date = utcnow()
        db.commit()
        db.refresh(account)

    identity = Identity(id=account.id, email=account.email, role=role)
    token = token_service.issue(identity)

    recorder.record_request(
        db,
        request,
        AuditAction.LOGIN,
        identity,
        patient_id=account.id if role is ActorRole.PATIENT else None,
    )
    logger.info(f"Login successful: {role.user_type} {account.id}")
    return token, account
