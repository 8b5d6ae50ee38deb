"""Models package initialization."""

from .base import Base
from .venue import Venue
from .event import Event, EventStatus, ExternalSource
from .dj import DJ
from .user import User, UserRole
from .run_of_show import (
    RunOfShow, TimeSlot, DJAssignment, SlotType, BookingStatus, ACTIVE_BOOKING_STATUSES
)

__all__ = [
    'Base',
    'Venue',
    'Event', 'EventStatus', 'ExternalSource',
    'DJ',
    'User', 'UserRole',
    'RunOfShow', 'TimeSlot', 'DJAssignment', 'SlotType', 'BookingStatus',
    'ACTIVE_BOOKING_STATUSES',
]
