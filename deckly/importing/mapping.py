"""Mapping of raw Ticketmaster event records into local event fields.

Everything here is a pure transform: no database access, no clock reads
other than the `now` passed in.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Any, List, Optional

from ..errors import UnmappableEventError
from ..models import Event, EventStatus, ExternalSource
from ..utils.time_of_day import add_hours, normalize_time
from ..utils.timezone import get_zone, local_date, now_utc, parse_iso_datetime

DEFAULT_START_TIME = "20:00"
DEFAULT_DURATION_HOURS = 4
PREFERRED_IMAGE_RATIO = "16_9"

ISO_TIME_PATTERN = re.compile(r'T(\d{2}):(\d{2})')


@dataclass
class EventDraft:
    """Local event fields derived from one external record."""
    name: str
    date: date
    start_time: str
    end_time: str
    ticketmaster_id: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    ticket_url: Optional[str] = None
    external_url: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    ticketmaster_data: Dict[str, Any] = field(default_factory=dict)
    status: EventStatus = EventStatus.IMPORTED
    external_source: ExternalSource = ExternalSource.TICKETMASTER

    def to_event(self, venue_id: int) -> Event:
        """Build a new Event from this draft."""
        event = Event(venue_id=venue_id, status=self.status)
        self.apply_to(event, venue_id, keep_status=True)
        return event

    def apply_to(self, event: Event, venue_id: int, keep_status: bool) -> None:
        """
        Overwrite an event's fields with the mapped values.

        Args:
            event: Event to update in place
            venue_id: Venue the record was imported for
            keep_status: Leave the event's workflow status as it is
        """
        event.name = self.name
        event.venue_id = venue_id
        event.date = self.date
        event.start_time = self.start_time
        event.end_time = self.end_time
        event.description = self.description
        event.image_url = self.image_url
        event.ticket_url = self.ticket_url
        event.external_url = self.external_url
        event.external_source = self.external_source
        event.ticketmaster_id = self.ticketmaster_id
        event.last_synced_at = self.last_synced_at
        event.ticketmaster_data = self.ticketmaster_data
        if not keep_status:
            event.status = self.status


def extract_time(
    date_time: Optional[str] = None,
    local_time: Optional[str] = None,
    zone_name: Optional[str] = None
) -> str:
    """
    Derive an `HH:MM` time for an external record.

    Prefers the explicit local time (`19:05:00` -> `19:05`). Otherwise the
    absolute timestamp is converted to the given zone, or, without a known
    zone, its `HH:MM` is read straight from the ISO string. Without either,
    events are assumed to start at 20:00.
    """
    if local_time:
        parts = local_time.split(':')
        if len(parts) >= 2:
            return normalize_time(f"{parts[0].zfill(2)}:{parts[1].zfill(2)}")
        return normalize_time(local_time)

    if date_time:
        zone = get_zone(zone_name)
        if zone is not None:
            return parse_iso_datetime(date_time).astimezone(zone).strftime('%H:%M')
        match = ISO_TIME_PATTERN.search(date_time)
        if match:
            return f"{match.group(1)}:{match.group(2)}"
        return parse_iso_datetime(date_time).strftime('%H:%M')

    return DEFAULT_START_TIME


def calculate_end_time(start_time: str) -> str:
    """Assume a four hour event; the hour wraps at midnight, the date does not roll."""
    return add_hours(start_time, DEFAULT_DURATION_HOURS)


def select_image(images: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    """Pick the best non-fallback image: 16:9 first, then the largest."""
    candidates = [img for img in images or [] if not img.get('fallback')]
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda img: (
            img.get('ratio') != PREFERRED_IMAGE_RATIO,
            -(img.get('width') or 0) * (img.get('height') or 0),
        ),
    )


def _event_date(raw: Dict[str, Any], zone_name: Optional[str]) -> date:
    start = (raw.get('dates') or {}).get('start') or {}
    # Without a zone the instant cannot be placed on the venue's calendar; localDate can
    if start.get('dateTime') and (zone_name or not start.get('localDate')):
        return local_date(parse_iso_datetime(start['dateTime']), zone_name)
    if start.get('localDate'):
        try:
            return date.fromisoformat(start['localDate'])
        except ValueError:
            raise UnmappableEventError(
                f"Event {raw.get('id')} has an invalid date '{start['localDate']}'",
                details={'id': raw.get('id')},
            )
    raise UnmappableEventError(
        f"Event {raw.get('id')} has no valid date",
        details={'id': raw.get('id')},
    )


def _provenance(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Display-only payload kept alongside the event."""
    dates = raw.get('dates') or {}
    sales = raw.get('sales')
    classification = (raw.get('classifications') or [{}])[0]
    promoters = raw.get('promoters') or []

    sales_dates = None
    if sales:
        public = sales.get('public')
        sales_dates = {
            'public': {
                'start_date_time': public.get('startDateTime'),
                'end_date_time': public.get('endDateTime'),
            } if public else None,
            'presales': [
                {
                    'name': presale.get('name'),
                    'start_date_time': presale.get('startDateTime'),
                    'end_date_time': presale.get('endDateTime'),
                }
                for presale in sales.get('presales') or []
            ],
        }

    return {
        'status': (dates.get('status') or {}).get('code'),
        'price_ranges': [
            {
                'type': price.get('type'),
                'currency': price.get('currency'),
                'min': price.get('min'),
                'max': price.get('max'),
            }
            for price in raw.get('priceRanges') or []
        ],
        'sales_dates': sales_dates,
        'images': [
            {
                'url': img.get('url'),
                'width': img.get('width'),
                'height': img.get('height'),
                'ratio': img.get('ratio'),
            }
            for img in raw.get('images') or []
        ],
        'genre': classification.get('genre'),
        'sub_genre': classification.get('subGenre'),
        'promoter': raw.get('promoter') or (promoters[0] if promoters else None),
        'age_restrictions': (
            'Legal age enforced'
            if (raw.get('ageRestrictions') or {}).get('legalAgeEnforced') else None
        ),
        'accessibility': raw.get('accessibility'),
        'seatmap': raw.get('seatmap'),
    }


def map_external_event(
    raw: Dict[str, Any],
    venue_timezone: Optional[str] = None,
    now: Optional[datetime] = None
) -> EventDraft:
    """
    Map a raw Ticketmaster event into local event fields.

    Args:
        raw: Event record as returned by the Discovery API
        venue_timezone: IANA zone of the local venue, used when the record has none
        now: Sync timestamp to record (current time when omitted)

    Returns:
        EventDraft: Mapped fields with status `imported` and source `ticketmaster`

    Raises:
        UnmappableEventError: If the record has no id or no usable date
    """
    if not raw.get('id'):
        raise UnmappableEventError("Event record has no id", details={'name': raw.get('name')})

    dates = raw.get('dates') or {}
    start = dates.get('start') or {}
    end = dates.get('end') or {}
    zone_name = dates.get('timezone') or venue_timezone

    event_date = _event_date(raw, zone_name)
    start_time = extract_time(start.get('dateTime'), start.get('localTime'), zone_name)
    if end.get('localTime'):
        end_time = extract_time(end.get('dateTime'), end.get('localTime'), zone_name)
    else:
        end_time = calculate_end_time(start_time)

    image = select_image(raw.get('images'))

    return EventDraft(
        name=raw.get('name') or f"Ticketmaster event {raw['id']}",
        date=event_date,
        start_time=start_time,
        end_time=end_time,
        ticketmaster_id=raw['id'],
        description=raw.get('info') or raw.get('pleaseNote'),
        image_url=image.get('url') if image else None,
        ticket_url=raw.get('url'),
        external_url=raw.get('url'),
        last_synced_at=now or now_utc(),
        ticketmaster_data=_provenance(raw),
    )
