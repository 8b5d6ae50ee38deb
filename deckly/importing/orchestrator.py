"""Scheduled import of Ticketmaster events for all auto-import venues."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional

from ..config.imports import ImportConfig
from ..db import Database
from ..errors import DecklyError
from ..models import Venue
from ..sources.base import EventSource
from ..sources.ticketmaster import get_date_range
from ..utils.retry import with_retry
from ..utils.timezone import now_utc
from .reconciliation import EventReconciler

logger = logging.getLogger(__name__)


@dataclass
class VenueImportResult:
    """Outcome of importing one venue."""
    venue_id: int
    venue_name: str
    events_imported: int = 0
    events_updated: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'venue_id': self.venue_id,
            'venue_name': self.venue_name,
            'events_imported': self.events_imported,
            'events_updated': self.events_updated,
            'errors': list(self.errors),
        }


def summarize(results: List[VenueImportResult]) -> Dict[str, int]:
    """Totals across venues."""
    return {
        'venues_processed': len(results),
        'events_imported': sum(r.events_imported for r in results),
        'events_updated': sum(r.events_updated for r in results),
        'errors': sum(len(r.errors) for r in results),
    }


class ImportOrchestrator:
    """
    Runs the import venue by venue.

    Venues are processed strictly one after another, each followed by a
    fixed pause to stay under the upstream per-key rate limit. A venue whose
    fetch fails gets the error on its result; the remaining venues still run.
    """

    def __init__(
        self,
        db: Database,
        source: EventSource,
        config: Optional[ImportConfig] = None,
        reconciler: Optional[EventReconciler] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_utc
    ):
        self.db = db
        self.source = source
        self.config = config or ImportConfig()
        self.reconciler = reconciler or EventReconciler(
            db, match_window_minutes=self.config.match_window_minutes, clock=clock
        )
        self.sleep = sleep
        self.clock = clock

    def eligible_venues(self, venue_id: Optional[int] = None) -> List[Venue]:
        """Venues with auto-import enabled and a Ticketmaster venue id, optionally just one."""
        with self.db.session() as session:
            query = session.query(Venue).filter(
                Venue.auto_import_enabled.is_(True),
                Venue.ticketmaster_venue_id.isnot(None),
            )
            if venue_id is not None:
                query = query.filter(Venue.id == venue_id)
            return query.order_by(Venue.id).all()

    def import_venue_events(self, venue: Venue, days_ahead: Optional[int] = None) -> VenueImportResult:
        """
        Fetch and reconcile one venue's upcoming events.

        Args:
            venue: Venue to import
            days_ahead: Size of the window starting now (configured default when omitted)

        Returns:
            VenueImportResult: Counts and error strings for the venue
        """
        result = VenueImportResult(venue_id=venue.id, venue_name=venue.name)
        if not venue.ticketmaster_venue_id:
            result.errors.append("No Ticketmaster venue ID found")
            return result

        start_date_time, end_date_time = get_date_range(days_ahead or self.config.days_ahead, now=self.clock())
        try:
            page = self.source.get_venue_events(
                venue.ticketmaster_venue_id,
                start_date_time=start_date_time,
                end_date_time=end_date_time,
            )
        except Exception as e:
            reason = e.message if isinstance(e, DecklyError) else str(e)
            logger.error(f"Error fetching events for venue {venue.name}: {reason}")
            result.errors.append(f"Error fetching events: {reason}")
            return result

        logger.info(f"Found {len(page.events)} events on Ticketmaster for {venue.name}")
        if page.total_pages > 1:
            logger.warning(
                f"Venue {venue.name} has {page.total_elements} events over {page.total_pages} pages; "
                f"only the first page was imported"
            )

        batch = self.reconciler.reconcile_batch(page.events, venue)
        result.events_imported = batch.events_imported
        result.events_updated = batch.events_updated
        result.errors.extend(batch.errors)

        self._stamp_last_import(venue.id)
        return result

    def import_all_venue_events(
        self,
        days_ahead: Optional[int] = None,
        venue_id: Optional[int] = None
    ) -> List[VenueImportResult]:
        """
        Import every eligible venue in turn.

        Args:
            days_ahead: Size of the import window (configured default when omitted)
            venue_id: Restrict the run to one venue

        Returns:
            List[VenueImportResult]: One result per venue, in processing order
        """
        venues = self.eligible_venues(venue_id)
        logger.info(f"Starting import for {len(venues)} venues...")

        results = []
        for venue in venues:
            logger.info(f"Importing events for: {venue.name}")
            result = self.import_venue_events(venue, days_ahead)
            results.append(result)

            logger.info(f"Imported: {result.events_imported}, Updated: {result.events_updated}")
            for error in result.errors:
                logger.warning(f"{venue.name}: {error}")

            self.sleep(self.config.venue_delay_seconds)

        totals = summarize(results)
        logger.info(
            f"Import complete: {totals['events_imported']} imported, "
            f"{totals['events_updated']} updated, {totals['errors']} errors"
        )
        return results

    @with_retry()
    def _stamp_last_import(self, venue_id: int) -> None:
        with self.db.session() as session:
            venue = session.get(Venue, venue_id)
            if venue is not None:
                venue.last_import_date = self.clock()
