"""Caller identity.

Login itself (email one-time passcode) is handled by the external identity
provider. After a successful challenge it hands the client a session token:
an HS256 JWT whose `sub` claim is the verified email, signed with the
shared `AUTH_SESSION_SECRET`. This module verifies such tokens and maps the
email to a local user and role.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from .db import Database
from .errors import AuthenticationError, PermissionDeniedError
from .models import User, UserRole
from .utils.timezone import now_utc

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_SECONDS = 7 * 24 * 3600


@dataclass(frozen=True)
class Identity:
    """A verified caller."""
    user_id: int
    email: str
    role: UserRole
    dj_id: Optional[int] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def require_admin(self) -> 'Identity':
        if not self.is_admin:
            raise PermissionDeniedError("Admin access required")
        return self

    def require_dj(self) -> int:
        """Return the caller's DJ id, or raise if the caller is not a linked DJ."""
        if self.role != UserRole.DJ or self.dj_id is None:
            raise PermissionDeniedError("DJ access required")
        return self.dj_id


def issue_session_token(
    email: str,
    secret: str,
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    now: Optional[datetime] = None
) -> str:
    """Create a signed session token (HS256 JWT) for a verified email."""
    issued_at = now or now_utc()
    claims = {
        'sub': email.strip().lower(),
        'iat': issued_at,
        'exp': issued_at + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)


def verify_session_token(token: str, secret: str) -> str:
    """
    Verify a session token and return the email it was issued for.

    Raises:
        AuthenticationError: If the token is malformed, forged or expired
    """
    if not secret:
        raise AuthenticationError("Authentication is not configured")

    try:
        claims = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except JWTError as e:
        logger.warning(f"Rejected session token: {e}")
        raise AuthenticationError("Invalid session token")

    email = claims.get('sub')
    if not email:
        raise AuthenticationError("Invalid session token")
    return email


def resolve_identity(db: Database, token: str, secret: str) -> Identity:
    """
    Verify a session token and load the caller's user record.

    Raises:
        AuthenticationError: If the token is invalid or no user has the email
    """
    email = verify_session_token(token, secret)
    with db.session() as session:
        user = session.query(User).filter(User.email == email).one_or_none()
        if user is None:
            logger.warning(f"Verified login for unknown user {email}")
            raise AuthenticationError("No account exists for this email")
        return Identity(
            user_id=user.id,
            email=user.email,
            role=user.role,
            dj_id=user.dj_id,
            name=user.name,
        )
