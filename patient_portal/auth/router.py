"""
Authentication routes: patient registration, email verification and the
three role-specific logins.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..core.audit_service import AuditRecorder, get_audit_recorder
from ..core.permissions import ActorRole
from ..core.security import TokenService
from ..database import get_db
from .dependencies import get_token_service
from .email import MailSender, get_mail_sender
from .schemas import (
    LoginRequest,
    PatientLoginResponse,
    PatientProfile,
    PatientRegistration,
    ProviderLoginResponse,
    ProviderProfile,
    RegisteredPatient,
    RegistrationResponse,
    StaffLoginResponse,
    StaffProfile,
    VerificationResponse,
)
from .service import login_account, register_patient, verify_email

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/patient/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Patient Self-Registration",
)
async def register_patient_route(
    registration: PatientRegistration,
    request: Request,
    db: Session = Depends(get_db),
    mail_sender: MailSender = Depends(get_mail_sender),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Patient self-registration endpoint.

    Creates an unverified patient and emails a verification link. The patient
    cannot log in until the link has been followed.
    """
    patient = await register_patient(db, registration, mail_sender, recorder, request)
    return RegistrationResponse(
        message="Registration successful. Please check your email to verify your account.",
        patient=RegisteredPatient.model_validate(patient),
    )


@router.get("/verify/{token}", response_model=VerificationResponse, summary="Verify Email Address")
async def verify_email_route(token: str, db: Session = Depends(get_db)):
    verify_email(db, token)
    return VerificationResponse(
        message="Email verified successfully. You can now log in to your account.",
        verified=True,
    )


@router.post("/patient/login", response_model=PatientLoginResponse, summary="Patient Login")
async def patient_login_route(
    login_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    token, patient = login_account(
        db, ActorRole.PATIENT, login_data.email, login_data.password, token_service, recorder, request
    )
    return PatientLoginResponse(token=token, patient=PatientProfile.model_validate(patient))


@router.post("/provider/login", response_model=ProviderLoginResponse, summary="Provider Login")
async def provider_login_route(
    login_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    token, provider = login_account(
        db, ActorRole.PROVIDER, login_data.email, login_data.password, token_service, recorder, request
    )
    return ProviderLoginResponse(token=token, provider=ProviderProfile.model_validate(provider))


@router.post("/staff/login", response_model=StaffLoginResponse, summary="Staff Login")
async def staff_login_route(
    login_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    token, staff = login_account(
        db, ActorRole.STAFF, login_data.email, login_data.password, token_service, recorder, request
    )
    return StaffLoginResponse(token=token, staff=StaffProfile.model_validate(staff))
