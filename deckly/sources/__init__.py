"""External event sources."""

from .base import EventSource, VenueEventsPage
from .ticketmaster import TicketmasterClient, format_date_for_ticketmaster, get_date_range

__all__ = [
    'EventSource',
    'VenueEventsPage',
    'TicketmasterClient',
    'format_date_for_ticketmaster',
    'get_date_range',
]
