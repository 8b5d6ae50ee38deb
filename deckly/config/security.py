"""Shared secrets: the cron trigger token and the session token signing key."""

import hmac
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class CronConfig:
    """Settings for the externally scheduled import trigger."""

    secret: str = ""

    def __post_init__(self):
        """Load the secret from environment if not provided."""
        if not self.secret:
            self.secret = os.environ.get('CRON_SECRET', '')

    @property
    def is_configured(self) -> bool:
        return bool(self.secret)

    def verify_bearer(self, auth_header: Optional[str]) -> bool:
        """Check an `Authorization: Bearer <secret>` header against the configured secret."""
        if not self.secret or not auth_header:
            return False
        scheme, _, token = auth_header.partition(' ')
        if scheme.lower() != 'bearer' or not token:
            return False
        return hmac.compare_digest(token.strip().encode(), self.secret.encode())


@dataclass
class AuthConfig:
    """Settings for verifying identity tokens issued by the OTP login provider."""

    session_secret: str = ""

    def __post_init__(self):
        """Load the signing secret from environment if not provided."""
        if not self.session_secret:
            self.session_secret = os.environ.get('AUTH_SESSION_SECRET', '')

    def validate(self) -> bool:
        """Validate the configuration."""
        if not self.session_secret:
            raise ValueError("AUTH_SESSION_SECRET environment variable is required")
        return True
