"""Reconciliation of external event records with local events.

For each raw Ticketmaster record the reconciler decides between:

1. updating the local event already linked to the same Ticketmaster id,
2. linking a manually entered event at the same venue that starts within
   the match window of the external start time, or
3. creating a new event.

A sync never moves an event back in its workflow: a linked event keeps its
status once it has progressed past `imported`, and a manual event keeps its
status unconditionally.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..db import Database
from ..errors import DecklyError
from ..models import Event, Venue, EventStatus, ExternalSource
from ..utils.retry import with_retry
from ..utils.time_of_day import to_minutes
from ..utils.timezone import now_utc
from .mapping import map_external_event

logger = logging.getLogger(__name__)

MATCH_WINDOW_MINUTES = 120


class ReconcileOutcome(str, enum.Enum):
    CREATED = 'created'
    UPDATED = 'updated'


@dataclass
class BatchResult:
    """Counts and per-event errors for one batch of raw records."""
    events_imported: int = 0
    events_updated: int = 0
    errors: List[str] = field(default_factory=list)

    def record(self, outcome: ReconcileOutcome) -> None:
        if outcome == ReconcileOutcome.CREATED:
            self.events_imported += 1
        else:
            self.events_updated += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events_imported': self.events_imported,
            'events_updated': self.events_updated,
            'errors': list(self.errors),
        }


def _local_start(event_date: date, start_time: str) -> datetime:
    minutes = to_minutes(start_time)
    return datetime.combine(event_date, time(minutes // 60, minutes % 60))


def find_matching_manual_event(
    session: Session,
    venue_id: int,
    event_date: date,
    start_time: str,
    window_minutes: int = MATCH_WINDOW_MINUTES
) -> Optional[Event]:
    """
    Find a manual, unlinked event at a venue that starts close to the given time.

    Start times are compared as full local datetimes, so an external event at
    00:30 can match a manual event entered at 23:30 the day before. The
    window is inclusive. Candidates are checked in creation order and the
    first one inside the window wins.

    Args:
        session: Open database session
        venue_id: Local venue id
        event_date: Local date of the external event
        start_time: Local `HH:MM` start of the external event
        window_minutes: Largest allowed start time distance

    Returns:
        Optional[Event]: The matching manual event, if any
    """
    target = _local_start(event_date, start_time)
    day = timedelta(days=1)

    candidates = session.query(Event).filter(
        Event.venue_id == venue_id,
        Event.date.in_([event_date - day, event_date, event_date + day]),
        Event.external_source == ExternalSource.MANUAL,
        Event.ticketmaster_id.is_(None),
    ).order_by(Event.id).all()

    for candidate in candidates:
        distance = abs(_local_start(candidate.date, candidate.start_time) - target)
        if distance <= timedelta(minutes=window_minutes):
            return candidate
    return None


class EventReconciler:
    """Applies external event records to the local event store."""

    def __init__(
        self,
        db: Database,
        match_window_minutes: int = MATCH_WINDOW_MINUTES,
        clock: Callable[[], datetime] = now_utc
    ):
        self.db = db
        self.match_window_minutes = match_window_minutes
        self.clock = clock

    @with_retry()
    def reconcile(self, raw: Dict[str, Any], venue: Venue) -> ReconcileOutcome:
        """
        Reconcile one raw Ticketmaster record for a venue in its own transaction.

        Args:
            raw: Event record as returned by the Discovery API
            venue: Local venue the record was fetched for

        Returns:
            ReconcileOutcome: CREATED for a new event, UPDATED for a linked or merged one

        Raises:
            UnmappableEventError: If the record cannot be mapped
        """
        draft = map_external_event(raw, venue.timezone, now=self.clock())

        with self.db.session() as session:
            linked = session.query(Event).filter(
                Event.ticketmaster_id == draft.ticketmaster_id
            ).order_by(Event.id).first()

            if linked is not None:
                keep_status = linked.status != EventStatus.IMPORTED
                draft.apply_to(linked, venue.id, keep_status=keep_status)
                logger.debug(f"Updated event {linked.id} from Ticketmaster {draft.ticketmaster_id}")
                return ReconcileOutcome.UPDATED

            manual = find_matching_manual_event(
                session, venue.id, draft.date, draft.start_time, self.match_window_minutes
            )
            if manual is not None:
                draft.apply_to(manual, venue.id, keep_status=True)
                logger.info(
                    f"Linked manual event {manual.id} '{manual.name}' to Ticketmaster {draft.ticketmaster_id}"
                )
                return ReconcileOutcome.UPDATED

            event = draft.to_event(venue.id)
            session.add(event)
            session.flush()
            logger.debug(f"Created event {event.id} from Ticketmaster {draft.ticketmaster_id}")
            return ReconcileOutcome.CREATED

    def reconcile_batch(self, raws: Iterable[Dict[str, Any]], venue: Venue) -> BatchResult:
        """
        Reconcile raw records one after another.

        A failing record is recorded in the result's error list and does not
        stop the rest of the batch.
        """
        result = BatchResult()
        for raw in raws:
            try:
                result.record(self.reconcile(raw, venue))
            except Exception as e:
                reason = e.message if isinstance(e, DecklyError) else str(e)
                label = raw.get('name', raw.get('id')) if isinstance(raw, dict) else raw
                message = f"Error processing event {label}: {reason}"
                logger.warning(message)
                result.errors.append(message)
        return result
