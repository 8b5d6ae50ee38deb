"""Timezone helpers. All stored instants are UTC."""

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def now_utc() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (including a trailing 'Z') into an aware UTC datetime."""
    return ensure_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))


def get_zone(name: Optional[str]) -> Optional[ZoneInfo]:
    """Look up an IANA zone, returning None for empty or unknown names."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def local_date(instant: datetime, zone_name: Optional[str] = None) -> date:
    """Calendar date of an instant in the given zone (UTC when the zone is unknown)."""
    zone = get_zone(zone_name) or timezone.utc
    return ensure_utc(instant).astimezone(zone).date()
