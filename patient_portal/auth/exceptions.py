"""
Authentication-specific exceptions.
"""
from ..exceptions import (
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    NotFoundException,
    ValidationException,
)


class MissingCredentialsException(ValidationException):
    """Exception raised when a login body lacks email or password."""
    default_detail = "Email and password are required"


class InvalidCredentialsException(AuthenticationException):
    """Exception raised when credentials are invalid."""
    default_detail = "Invalid email or password"


class InvalidTokenException(AuthenticationException):
    """Exception raised when a bearer token is missing, forged or expired."""
    default_detail = "Authentication required"


class AccountInactiveException(AuthorizationException):
    """Exception raised when a deactivated account tries to log in."""
    default_detail = "Your account has been deactivated. Please contact support."


class EmailNotVerifiedException(AuthorizationException):
    default_detail = "Please verify your email address before logging in"


class RoleDeniedException(AuthorizationException):
    """Exception raised when user doesn't have required role."""

    def __init__(self, required_roles: str):
        super().__init__(f"Access denied. {required_roles} role required.")


class EmailAlreadyExistsException(ConflictException):
    """Exception raised when email already exists."""
    default_detail = "An account with this email already exists"


class VerificationTokenInvalidException(NotFoundException):
    default_detail = "Invalid or expired verification token"
