"""
Admin authentication for mutating endpoints.
The gate is a pluggable strategy: anything with authorize(credential) -> bool.
"""
import hmac
import logging
from typing import Optional, Protocol

import bcrypt
from fastapi import HTTPException, Header, Request, status

from pfp_gallery.config import Settings

logger = logging.getLogger(__name__)

ADMIN_HEADER = "x-admin-pass"


class AdminAuthorizer(Protocol):
    def authorize(self, credential: Optional[str]) -> bool:
        ...


class SharedSecretAuthorizer:
    """
    Compares the credential against a configured plain-text password.
    Both must be non-empty and byte-equal.
    """

    def __init__(self, password: str):
        self._password = password or ""

    def authorize(self, credential: Optional[str]) -> bool:
        if not credential or not self._password:
            return False
        return hmac.compare_digest(
            credential.encode("utf-8"),
            self._password.encode("utf-8"),
        )


class BcryptAuthorizer:
    """Checks the credential against a bcrypt hash of the admin password."""

    def __init__(self, password_hash: str):
        self._password_hash = password_hash or ""

    def authorize(self, credential: Optional[str]) -> bool:
        if not credential or not self._password_hash:
            return False
        return verify_password(credential, self._password_hash)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.
    Used for generating the ADMIN_PASSWORD_HASH value.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hashed password.

    Args:
        password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def build_authorizer(settings: Settings) -> AdminAuthorizer:
    """Pick the bcrypt strategy when a hash is configured, else the shared secret."""
    if settings.ADMIN_PASSWORD_HASH:
        logger.info("Admin gate: bcrypt password hash")
        return BcryptAuthorizer(settings.ADMIN_PASSWORD_HASH)
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD not set - all admin requests will be rejected")
    return SharedSecretAuthorizer(settings.ADMIN_PASSWORD)


def is_admin(request: Request, credential: Optional[str]) -> bool:
    """Run the authorizer stored on app.state against a header value."""
    authorizer: AdminAuthorizer = request.app.state.authorizer
    return authorizer.authorize(credential)


def require_admin(
    request: Request,
    x_admin_pass: Optional[str] = Header(None, alias=ADMIN_HEADER, description="Admin password"),
) -> bool:
    """
    FastAPI dependency guarding mutating endpoints.

    Raises:
        HTTPException: 401 if the header is missing or incorrect
    """
    if not is_admin(request, x_admin_pass):
        logger.warning(f"Unauthorized {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return True
