"""
Core security utilities for authentication and password handling.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from .permissions import ActorRole, Identity

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Salted bcrypt digest
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    bcrypt compares digests in constant time. A missing or malformed digest
    is reported as a mismatch rather than raised.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Password verification against an unrecognised digest")
        return False


def generate_verification_token() -> str:
    """
    Generate the single-use token mailed to patients to confirm their address.

    Returns:
        str: 64 hex characters
    """
    return secrets.token_hex(32)


class TokenService:
    """
    Issues and verifies signed, time-limited identity assertions (JWT).

    The secret is injected at construction; there is no revocation list, so a
    token stays valid until it expires.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_delta: timedelta = timedelta(hours=24)):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(self, identity: Identity, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token for an identity.

        Args:
            identity: The identity to embed
            expires_delta: Token lifetime, defaults to the service lifetime

        Returns:
            str: Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        payload = {
            "id": identity.id,
            "email": identity.email,
            "role": identity.role.value,
            "userType": identity.role.user_type,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_delta),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Identity]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token string

        Returns:
            Identity if the token is authentic, unexpired and well formed, None otherwise
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        try:
            role = ActorRole(payload["role"])
            identity = Identity(id=str(payload["id"]), email=payload["email"], role=role)
        except (KeyError, TypeError, ValueError):
            return None

        if payload.get("userType") != role.user_type:
            return None
        return identity
