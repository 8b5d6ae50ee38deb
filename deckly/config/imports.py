"""Settings for the scheduled Ticketmaster import."""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ImportConfig:
    """
    Import pipeline settings.

    Fields:
        days_ahead: How far into the future to pull events for each venue
        venue_delay_seconds: Pause after each venue so the upstream per-key rate limit is respected
        match_window_minutes: Maximum start time distance for linking to a manual event
    """
    days_ahead: Optional[int] = None
    venue_delay_seconds: Optional[float] = None
    match_window_minutes: int = 120

    def __post_init__(self):
        """Load unset values from environment."""
        if self.days_ahead is None:
            self.days_ahead = int(os.environ.get('IMPORT_DAYS_AHEAD', '90'))
        if self.venue_delay_seconds is None:
            self.venue_delay_seconds = float(os.environ.get('IMPORT_VENUE_DELAY_SECONDS', '0.5'))

    def validate(self) -> bool:
        """Validate the configuration."""
        if self.days_ahead <= 0:
            raise ValueError("IMPORT_DAYS_AHEAD must be a positive number of days")
        if self.venue_delay_seconds < 0:
            raise ValueError("IMPORT_VENUE_DELAY_SECONDS cannot be negative")
        if self.match_window_minutes < 0:
            raise ValueError("match_window_minutes cannot be negative")
        return True
