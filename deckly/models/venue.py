"""Venue model definition."""

from typing import Dict, Any
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Index

from .base import Base
from ..utils.timezone import now_utc


class Venue(Base):
    """
    A venue that hosts events.

    Venue CRUD belongs to the admin surface; the scheduling core only reads
    venues and stamps `last_import_date` after an import run.

    Fields:
        id: Unique identifier (auto-generated)
        name: Display name
        address, city, state, zip_code: Location
        capacity: Maximum number of guests (optional)
        timezone: IANA zone of the venue, used to place imported events on a local date
        is_active: Whether the venue is active
        ticketmaster_venue_id: Venue id on Ticketmaster (optional)
        auto_import_enabled: Whether the scheduled import pulls events for this venue
        last_import_date: When the last import for this venue finished
    """
    __tablename__ = 'venues'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    address = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(10), nullable=True)
    capacity = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    contact_email = Column(String(255), nullable=True)
    timezone = Column(String(64), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # External source configuration
    ticketmaster_venue_id = Column(String(64), nullable=True, index=True)
    auto_import_enabled = Column(Boolean, nullable=False, default=False)
    last_import_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('ix_venues_auto_import', 'auto_import_enabled', 'last_import_date'),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'zip_code': self.zip_code,
            'capacity': self.capacity,
            'timezone': self.timezone,
            'is_active': self.is_active,
            'external_source': {
                'source_venue_id': self.ticketmaster_venue_id,
                'auto_import_enabled': self.auto_import_enabled,
                'last_import_date': self.last_import_date.isoformat() if self.last_import_date else None,
            },
        }

    def __str__(self) -> str:
        return f"Venue(id={self.id}, name={self.name})"
