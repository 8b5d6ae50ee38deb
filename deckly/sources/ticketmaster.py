"""Ticketmaster Discovery API client.

Documentation: https://developer.ticketmaster.com/products-and-docs/apis/discovery-api/v2/
"""

import logging
from datetime import datetime, timedelta
from typing import List, Dict, Any, Optional, Tuple

import requests

from .base import EventSource, VenueEventsPage
from ..config.external_services import TicketmasterConfig
from ..errors import ExternalAPIError
from ..utils.retry import with_retry
from ..utils.timezone import ensure_utc, now_utc

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (requests.Timeout, requests.ConnectionError)


def format_date_for_ticketmaster(dt: datetime) -> str:
    """Format an instant as `YYYY-MM-DDTHH:MM:SSZ` (UTC, no fractional seconds)."""
    return ensure_utc(dt).strftime('%Y-%m-%dT%H:%M:%SZ')


def get_date_range(days: int = 90, now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Get the import window from now until `days` days ahead.

    Returns:
        Tuple[str, str]: (start_date_time, end_date_time) in Ticketmaster format
    """
    start = now or now_utc()
    return (
        format_date_for_ticketmaster(start),
        format_date_for_ticketmaster(start + timedelta(days=days)),
    )


class TicketmasterClient(EventSource):
    """Read-only client for the Ticketmaster Discovery API."""

    def __init__(self, config: Optional[TicketmasterConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: API settings (loaded from environment when omitted)
            session: HTTP session to use (a new one when omitted)
        """
        super().__init__('ticketmaster')
        self.config = config or TicketmasterConfig()
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

        # Bind retry settings from config to the transport call
        self._get = with_retry(
            max_attempts=self.config.max_attempts,
            delay=self.config.retry_delay,
            exceptions=TRANSIENT_ERRORS,
        )(self._get_once)

    def _get_once(self, path: str, params: Dict[str, Any]) -> requests.Response:
        return self.session.get(
            f"{self.config.base_url}{path}",
            params={'apikey': self.config.api_key, **params},
            timeout=self.config.timeout,
        )

    def _request(self, path: str, params: Dict[str, Any], allow_not_found: bool = False) -> Optional[Dict[str, Any]]:
        if not self.config.api_key:
            raise ExternalAPIError("Ticketmaster API key is not configured")

        params = {key: value for key, value in params.items() if value not in (None, '')}
        try:
            response = self._get(path, params)
        except requests.RequestException as e:
            logger.error(f"Ticketmaster request to {path} failed: {e}")
            raise ExternalAPIError(f"Ticketmaster request failed: {e}") from e

        if allow_not_found and response.status_code == 404:
            return None
        if not response.ok:
            raise ExternalAPIError(
                f"Ticketmaster API error: {response.status_code} - {response.text}",
                details={'status': response.status_code, 'path': path},
            )
        return response.json()

    def search_venues(
        self,
        keyword: Optional[str] = None,
        city: Optional[str] = None,
        state_code: Optional[str] = None,
        country_code: Optional[str] = None,
        size: Optional[int] = None,
        postal_code: Optional[str] = None,
        radius: Optional[int] = None,
        unit: Optional[str] = None,
        **filters: Any
    ) -> List[Dict[str, Any]]:
        """Search Ticketmaster venues by name and location."""
        data = self._request('/venues.json', {
            'keyword': keyword,
            'city': city,
            'stateCode': state_code,
            'countryCode': country_code,
            'postalCode': postal_code,
            'radius': radius,
            'unit': unit,
            'size': size,
            **filters,
        })
        return data.get('_embedded', {}).get('venues', [])

    def get_venue_events(
        self,
        venue_id: str,
        start_date_time: Optional[str] = None,
        end_date_time: Optional[str] = None,
        size: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None
    ) -> VenueEventsPage:
        """Get one page of events for a Ticketmaster venue."""
        data = self._request('/events.json', {
            'venueId': venue_id,
            'startDateTime': start_date_time,
            'endDateTime': end_date_time,
            'size': size or self.config.page_size,
            'page': page,
            'sort': sort or self.config.sort,
        })
        page_info = data.get('page', {})
        return VenueEventsPage(
            events=data.get('_embedded', {}).get('events', []),
            total_pages=page_info.get('totalPages', 0),
            total_elements=page_info.get('totalElements', 0),
        )

    def get_event_by_id(self, event_id: str) -> Optional[Dict[str, Any]]:
        """Get a single event, or None if Ticketmaster does not know it."""
        return self._request(f'/events/{event_id}.json', {}, allow_not_found=True)
