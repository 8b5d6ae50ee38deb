"""DJ model definition."""

from typing import Dict, Any, Optional
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, JSON

from .base import Base
from ..utils.timezone import now_utc


class DJ(Base):
    """
    A DJ who can be booked into time slots.

    The number of bookings is not stored here; it is counted from the
    assignment table when needed (see `DJRoster.booking_count`).
    """
    __tablename__ = 'djs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    genres = Column(JSON, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    phone = Column(String(32), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    def __init__(self, **kwargs):
        """Initialize DJ, normalizing the email address."""
        if kwargs.get('email'):
            kwargs['email'] = kwargs['email'].strip().lower()
        super().__init__(**kwargs)

    def to_summary(self) -> Dict[str, Any]:
        """The fields shown next to an assignment."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'genres': list(self.genres or []),
        }

    def to_dict(self, booking_count: Optional[int] = None) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = self.to_summary()
        data.update({
            'bio': self.bio,
            'phone': self.phone,
            'image_url': self.image_url,
            'is_active': self.is_active,
        })
        if booking_count is not None:
            data['booking_count'] = booking_count
        return data

    def __str__(self) -> str:
        return f"DJ(id={self.id}, name={self.name})"
