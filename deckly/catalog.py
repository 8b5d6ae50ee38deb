"""Manual events and the DJ roster.

Generic venue/DJ CRUD lives in the admin UI; these are the pieces the
scheduling core and its routes need: creating and listing manual events,
moving an event through its workflow, and registering DJs.
"""

import logging
from datetime import date
from typing import Dict, Any, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from .db import Database
from .errors import DuplicateKeyError, InvalidTransitionError, NotFoundError, ValidationError
from .models import (
    DJ, DJAssignment, Event, Venue, EventStatus, ExternalSource, ACTIVE_BOOKING_STATUSES
)
from .utils.time_of_day import add_hours, normalize_time

logger = logging.getLogger(__name__)

DEFAULT_EVENT_HOURS = 4


class EventCatalog:
    """Manual event records and their workflow status."""

    def __init__(self, db: Database):
        self.db = db

    def create_manual_event(
        self,
        name: str,
        venue_id: int,
        event_date: date,
        start_time: str,
        end_time: Optional[str] = None,
        description: Optional[str] = None,
        ticket_url: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create an event entered by an admin.

        The event starts as a `draft` with `manual` provenance. Without an
        end time it runs for four hours.

        Raises:
            NotFoundError: If the venue does not exist
            ValidationError: If the name is empty or a time is not HH:MM
        """
        name = (name or '').strip()
        if not name:
            raise ValidationError("Please provide an event name")
        start_time = normalize_time(start_time)
        end_time = normalize_time(end_time) if end_time else add_hours(start_time, DEFAULT_EVENT_HOURS)

        with self.db.session() as session:
            venue = session.get(Venue, venue_id)
            if venue is None:
                raise NotFoundError('Venue', venue_id)

            event = Event(
                name=name,
                venue=venue,
                date=event_date,
                start_time=start_time,
                end_time=end_time,
                description=description,
                ticket_url=ticket_url,
                image_url=image_url,
                status=EventStatus.DRAFT,
                external_source=ExternalSource.MANUAL,
            )
            session.add(event)
            session.flush()
            logger.info(f"Created manual event {event.id} '{name}' at venue {venue_id} on {event_date}")
            return event.to_dict()

    def get_event(self, event_id: int) -> Dict[str, Any]:
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFoundError('Event', event_id)
            return event.to_dict()

    def list_events(
        self,
        venue_id: Optional[int] = None,
        status: Optional[EventStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """List events ordered by date and start time, optionally filtered."""
        with self.db.session() as session:
            query = session.query(Event)
            if venue_id is not None:
                query = query.filter(Event.venue_id == venue_id)
            if status is not None:
                query = query.filter(Event.status == EventStatus(status))
            if date_from is not None:
                query = query.filter(Event.date >= date_from)
            if date_to is not None:
                query = query.filter(Event.date <= date_to)
            events = query.order_by(Event.date, Event.start_time, Event.id).all()
            return [event.to_dict() for event in events]

    def update_status(self, event_id: int, status: EventStatus) -> Dict[str, Any]:
        """
        Set an event's workflow status.

        Admins may move an event forwards or backwards; only a cancelled
        event stays cancelled.

        Raises:
            NotFoundError: If the event does not exist
            InvalidTransitionError: If the event is cancelled
        """
        status = EventStatus(status)
        with self.db.session() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise NotFoundError('Event', event_id)
            if event.status == EventStatus.CANCELLED and status != EventStatus.CANCELLED:
                raise InvalidTransitionError(
                    "A cancelled event cannot be reopened",
                    details={'from': event.status.value, 'to': status.value},
                )
            previous = event.status
            event.status = status
            session.flush()
            logger.info(f"Event {event_id} status {previous.value} -> {status.value}")
            return event.to_dict()


class DJRoster:
    """DJ records and their booking counts."""

    def __init__(self, db: Database):
        self.db = db

    def create_dj(
        self,
        name: str,
        email: str,
        genres: Optional[List[str]] = None,
        bio: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a DJ.

        Raises:
            DuplicateKeyError: If another DJ already uses the email
        """
        name = (name or '').strip()
        if not name or not (email or '').strip():
            raise ValidationError("Please provide a DJ name and email")

        with self.db.session() as session:
            dj = DJ(name=name, email=email, genres=list(genres or []), bio=bio, phone=phone)
            session.add(dj)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateKeyError(
                    "A DJ with this email already exists",
                    details={'email': dj.email},
                ) from e
            logger.info(f"Registered DJ {dj.id} ({dj.email})")
            return dj.to_dict(booking_count=0)

    def get_dj(self, dj_id: int) -> Dict[str, Any]:
        with self.db.session() as session:
            dj = session.get(DJ, dj_id)
            if dj is None:
                raise NotFoundError('DJ', dj_id)
            return dj.to_dict(booking_count=self._count(session, dj_id))

    def booking_count(self, dj_id: int) -> int:
        """Number of the DJ's assignments that are pending or confirmed."""
        with self.db.session() as session:
            return self._count(session, dj_id)

    @staticmethod
    def _count(session, dj_id: int) -> int:
        return session.query(func.count(DJAssignment.id)).filter(
            DJAssignment.dj_id == dj_id,
            DJAssignment.status.in_(ACTIVE_BOOKING_STATUSES),
        ).scalar() or 0
