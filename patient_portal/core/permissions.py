"""
Core permissions utilities for role-based access control.

Actors come in exactly three variants (provider, patient, staff). Every
protected operation declares the set of roles it admits and evaluates
``authorize`` on each request; decisions are never cached.
"""
import enum
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from pydantic import BaseModel


class ActorRole(str, enum.Enum):
    """
    Enumeration for the kinds of account that can act in the system.

    Roles:
    - PROVIDER: Clinicians who read and update patient records
    - PATIENT: Patients who view their own bills and pay them
    - STAFF: Administrative staff who manage accounts and run reports
    """
    PROVIDER = "provider"
    PATIENT = "patient"
    STAFF = "staff"

    @property
    def user_type(self) -> str:
        """Account table label carried in tokens as ``userType``."""
        return USER_TYPES[self]


USER_TYPES: Dict[ActorRole, str] = {
    ActorRole.PROVIDER: "Provider",
    ActorRole.PATIENT: "Patient",
    ActorRole.STAFF: "Staff",
}


class Identity(BaseModel):
    """
    Verified identity of the actor behind a request.

    Fields:
    - id: Account ID
    - email: Account email address
    - role: Which kind of account this is
    """
    id: str
    email: str
    role: ActorRole

    model_config = {"frozen": True}

    @property
    def user_type(self) -> str:
        return self.role.user_type


class DenyReason(str, enum.Enum):
    """Why a request was refused; callers map these to 401 and 403."""
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AccessDecision:
    permitted: bool
    reason: Optional[DenyReason] = None


PERMIT = AccessDecision(permitted=True)


def authorize(identity: Optional[Identity], allowed_roles: Iterable[ActorRole]) -> AccessDecision:
    """
    Decide whether an identity may perform an operation restricted to some roles.

    Args:
        identity: Verified identity, or None when no valid token was presented
        allowed_roles: Roles admitted by the operation

    Returns:
        AccessDecision: PERMIT, or a denial carrying UNAUTHENTICATED / FORBIDDEN
    """
    if identity is None:
        return AccessDecision(permitted=False, reason=DenyReason.UNAUTHENTICATED)
    if identity.role not in set(allowed_roles):
        return AccessDecision(permitted=False, reason=DenyReason.FORBIDDEN)
    return PERMIT


def describe_roles(roles: Iterable[ActorRole]) -> str:
    """Human readable role list, e.g. ``Provider or Staff``."""
    return " or ".join(role.user_type for role in roles)
