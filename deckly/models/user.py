"""User model: maps a verified email identity to a role."""

import enum
from typing import Dict, Any
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from .base import Base, enum_column
from ..utils.timezone import now_utc


class UserRole(str, enum.Enum):
    ADMIN = 'admin'
    DJ = 'dj'


class User(Base):
    """
    An account that can sign in through the OTP provider.

    Fields:
        email: Verified email (unique, lowercase)
        role: admin or dj
        dj_id: DJ profile for users with the dj role (optional until an admin links one)
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(
        enum_column(UserRole, length=16),
        nullable=False,
        default=UserRole.DJ,
    )
    dj_id = Column(Integer, ForeignKey('djs.id'), nullable=True, index=True)
    name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    def __init__(self, **kwargs):
        """Initialize User, normalizing the email address."""
        if kwargs.get('email'):
            kwargs['email'] = kwargs['email'].strip().lower()
        super().__init__(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role.value if self.role else None,
            'dj_id': self.dj_id,
            'name': self.name,
        }
