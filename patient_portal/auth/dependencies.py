"""
FastAPI dependencies for authentication and authorization.

Every protected route depends on ``require_roles``: the bearer token is
verified and the role gate evaluated on each request.
"""
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..core.permissions import ActorRole, DenyReason, Identity, authorize, describe_roles
from ..core.security import TokenService
from .exceptions import InvalidTokenException, RoleDeniedException

# Bearer scheme; a missing header is handled by the role gate, not here
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_token_service() -> TokenService:
    """
    Dependency returning the token service built from settings.

    Returns:
        TokenService: Signs with the configured secret and lifetime
    """
    return TokenService(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> Optional[Identity]:
    """
    Resolve the identity asserted by the request's bearer token.

    Returns:
        Identity, or None when the header is absent or the token does not verify
    """
    if credentials is None:
        return None
    return token_service.verify(credentials.credentials)


def require_roles(*allowed_roles: ActorRole):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Function that returns the caller's identity or raises 401/403
    """
    def role_checker(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
        decision = authorize(identity, allowed_roles)
        if decision.permitted:
            return identity
        if decision.reason is DenyReason.UNAUTHENTICATED:
            raise InvalidTokenException()
        if decision.reason is DenyReason.FORBIDDEN:
            raise RoleDeniedException(describe_roles(allowed_roles))
        raise AssertionError(f"Unhandled deny reason: {decision.reason}")
    return role_checker


# Convenience dependencies for specific roles
require_provider = require_roles(ActorRole.PROVIDER)
require_patient = require_roles(ActorRole.PATIENT)
require_staff = require_roles(ActorRole.STAFF)
