"""Base interface that all external event sources must implement."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


@dataclass
class VenueEventsPage:
    """One page of raw events for a venue, as returned by the source."""
    events: List[Dict[str, Any]] = field(default_factory=list)
    total_pages: int = 0
    total_elements: int = 0


class EventSource(ABC):
    """
    Base interface for external event sources.

    Each source is responsible for:
    1. Finding its own venue records so local venues can be linked to them
    2. Fetching the raw event records of a linked venue for a time window

    Raw records are returned as the source delivers them; mapping them into
    local events is done by the import pipeline.
    """

    def __init__(self, source_id: str):
        """
        Initialize the source with its identifier.

        Args:
            source_id: The source identifier (e.g., 'ticketmaster')
        """
        self.source_id = source_id

    @abstractmethod
    def search_venues(
        self,
        keyword: Optional[str] = None,
        city: Optional[str] = None,
        state_code: Optional[str] = None,
        country_code: Optional[str] = None,
        size: Optional[int] = None,
        **filters: Any
    ) -> List[Dict[str, Any]]:
        """
        Search the source's venue directory.

        Returns:
            List[Dict[str, Any]]: Raw venue records, best matches first
        """

    @abstractmethod
    def get_venue_events(
        self,
        venue_id: str,
        start_date_time: Optional[str] = None,
        end_date_time: Optional[str] = None,
        size: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None
    ) -> VenueEventsPage:
        """
        Fetch raw events for one venue.

        Args:
            venue_id: The venue's id on the source
            start_date_time, end_date_time: Window bounds, `YYYY-MM-DDTHH:MM:SSZ`

        Raises:
            ExternalAPIError: If the source cannot be reached or rejects the request
        """
