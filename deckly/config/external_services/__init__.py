"""External service configurations."""

from .ticketmaster import (
    TicketmasterConfig,
    get_ticketmaster_config
)

__all__ = [
    'TicketmasterConfig',
    'get_ticketmaster_config'
]
