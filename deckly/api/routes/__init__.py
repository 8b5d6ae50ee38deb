"""Routes package initialization."""

from . import (
    cron,
    dj_bookings,
    events,
    health,
    run_of_show
)

__all__ = [
    'cron',
    'dj_bookings',
    'events',
    'health',
    'run_of_show'
]
