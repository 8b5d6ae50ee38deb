"""Event model definition."""

import enum
from typing import Dict, Any, Optional

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Text, JSON, ForeignKey, Index
)
from sqlalchemy.orm import relationship

from .base import Base, enum_column
from ..utils.timezone import now_utc


class EventStatus(str, enum.Enum):
    """Workflow status of an event, in workflow order. `cancelled` is terminal."""

    DRAFT = 'draft'
    IMPORTED = 'imported'
    ROS_DRAFT = 'ros_draft'
    ROS_COMPLETE = 'ros_complete'
    PENDING_CONFIRMATION = 'pending_confirmation'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class ExternalSource(str, enum.Enum):
    """Where an event record came from."""

    MANUAL = 'manual'
    TICKETMASTER = 'ticketmaster'
    POSH = 'posh'


class Event(Base):
    """
    A scheduled occurrence at one venue on one calendar date.

    Times are local wall-clock `HH:MM` strings, not instants. An event may
    be created by an admin (`manual`) or by the Ticketmaster import; once a
    manual event is linked to a Ticketmaster record it carries
    `ticketmaster_id` and the verbatim `ticketmaster_data` payload.

    Fields:
        id: Unique identifier (auto-generated)
        name: Event name
        venue_id: Venue hosting the event
        date: Local calendar date
        start_time, end_time: Local `HH:MM`
        status: Workflow status
        external_source: Provenance of the record
        ticketmaster_id, posh_id: One external id per source
        last_synced_at: When the record was last refreshed from its external source
        ticketmaster_data: Display-only payload (prices, sale windows, genre, promoter...)
    """
    __tablename__ = 'events'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    venue_id = Column(Integer, ForeignKey('venues.id'), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(enum_column(EventStatus), nullable=False, default=EventStatus.DRAFT)
    image_url = Column(String(500), nullable=True)
    ticket_url = Column(String(500), nullable=True)

    # External sync tracking
    external_source = Column(enum_column(ExternalSource), nullable=False, default=ExternalSource.MANUAL)
    ticketmaster_id = Column(String(64), nullable=True, index=True)
    posh_id = Column(String(64), nullable=True)
    external_url = Column(String(500), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    ticketmaster_data = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    venue = relationship('Venue', lazy='joined')

    __table_args__ = (
        Index('ix_events_venue_date', 'venue_id', 'date'),
        Index('ix_events_date_status', 'date', 'status'),
    )

    @property
    def external_ids(self) -> Dict[str, Optional[str]]:
        return {
            'ticketmaster': self.ticketmaster_id,
            'posh': self.posh_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'venue_id': self.venue_id,
            'venue_name': self.venue.name if self.venue else None,
            'date': self.date.isoformat() if self.date else None,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'description': self.description,
            'status': self.status.value if self.status else None,
            'image_url': self.image_url,
            'ticket_url': self.ticket_url,
            'external_source': self.external_source.value if self.external_source else None,
            'external_ids': self.external_ids,
            'external_url': self.external_url,
            'last_synced_at': self.last_synced_at.isoformat() if self.last_synced_at else None,
            'ticketmaster_data': self.ticketmaster_data,
        }

    def __str__(self) -> str:
        return f"Event(id={self.id}, name={self.name}, date={self.date}, start={self.start_time})"
