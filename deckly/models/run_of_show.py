"""Run of show models: the per-event schedule, its time slots and DJ assignments."""

import enum
import uuid
from typing import Dict, Any

from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from .base import Base, enum_column
from ..utils.timezone import now_utc


class SlotType(str, enum.Enum):
    OPENER = 'opener'
    MAIN = 'main'
    CLOSER = 'closer'
    SPECIAL_GUEST = 'special_guest'


class BookingStatus(str, enum.Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    DECLINED = 'declined'
    CANCELLED = 'cancelled'


# Statuses that hold a DJ's time
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def new_slot_id() -> str:
    return str(uuid.uuid4())


class RunOfShow(Base):
    """
    The schedule of one event. Exactly one per event.

    `version` is bumped on every write to the slot list; a flush against a
    row whose version moved underneath raises StaleDataError.
    """
    __tablename__ = 'run_of_shows'

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey('events.id', ondelete='CASCADE'), nullable=False, unique=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc)

    event = relationship('Event', lazy='joined')
    time_slots = relationship(
        'TimeSlot',
        back_populates='run_of_show',
        order_by='TimeSlot.position',
        collection_class=ordering_list('position'),
        cascade='all, delete-orphan',
    )

    __mapper_args__ = {'version_id_col': version}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary. Slots are returned in storage order."""
        return {
            'id': self.id,
            'event_id': self.event_id,
            'version': self.version,
            'time_slots': [slot.to_dict() for slot in self.time_slots],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class TimeSlot(Base):
    """
    A performance window inside a run of show.

    Start and end are local `HH:MM`; an end before the start means the slot
    runs past midnight.
    """
    __tablename__ = 'time_slots'

    id = Column(String(36), primary_key=True, default=new_slot_id)
    run_of_show_id = Column(Integer, ForeignKey('run_of_shows.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    slot_name = Column(String(100), nullable=False)
    slot_type = Column(enum_column(SlotType), nullable=False, default=SlotType.MAIN)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    max_djs = Column(Integer, nullable=True)
    notes = Column(String(500), nullable=True)

    run_of_show = relationship('RunOfShow', back_populates='time_slots')
    dj_assignments = relationship(
        'DJAssignment',
        back_populates='time_slot',
        order_by='DJAssignment.position',
        collection_class=ordering_list('position'),
        cascade='all, delete-orphan',
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'slot_name': self.slot_name,
            'slot_type': self.slot_type.value if self.slot_type else None,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'max_djs': self.max_djs,
            'notes': self.notes,
            'dj_assignments': [assignment.to_dict() for assignment in self.dj_assignments],
        }


class DJAssignment(Base):
    """One DJ booked into one time slot, with its own confirmation state."""
    __tablename__ = 'dj_assignments'

    id = Column(Integer, primary_key=True, autoincrement=True)
    time_slot_id = Column(String(36), ForeignKey('time_slots.id', ondelete='CASCADE'), nullable=False)
    dj_id = Column(Integer, ForeignKey('djs.id'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    status = Column(enum_column(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    notification_sent = Column(Boolean, nullable=False, default=False)
    notification_sent_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String(500), nullable=True)

    time_slot = relationship('TimeSlot', back_populates='dj_assignments')
    dj = relationship('DJ', lazy='joined')

    __table_args__ = (
        UniqueConstraint('time_slot_id', 'dj_id', name='uq_dj_assignments_slot_dj'),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, resolving the DJ reference to a summary."""
        return {
            'dj_id': self.dj_id,
            'dj': self.dj.to_summary() if self.dj else None,
            'status': self.status.value if self.status else None,
            'notification_sent': self.notification_sent,
            'notification_sent_at': self.notification_sent_at.isoformat() if self.notification_sent_at else None,
            'confirmed_at': self.confirmed_at.isoformat() if self.confirmed_at else None,
            'notes': self.notes,
        }
