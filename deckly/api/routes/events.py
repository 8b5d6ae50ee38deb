"""Admin routes for events."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends

from ...catalog import EventCatalog
from ...models import EventStatus
from ..dependencies import get_event_catalog, require_admin
from ..schemas import EventIn, EventStatusIn

router = APIRouter(prefix="/admin/events", tags=["events"], dependencies=[Depends(require_admin)])


@router.post("", status_code=201)
def create_event(body: EventIn, catalog: EventCatalog = Depends(get_event_catalog)):
    """Create a manual event. It starts as a draft."""
    event = catalog.create_manual_event(
        name=body.name,
        venue_id=body.venue_id,
        event_date=body.date,
        start_time=body.start_time,
        end_time=body.end_time,
        description=body.description,
        ticket_url=body.ticket_url,
        image_url=body.image_url,
    )
    return {"event": event}


@router.get("")
def list_events(
    venue_id: Optional[int] = None,
    status: Optional[EventStatus] = None,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
    catalog: EventCatalog = Depends(get_event_catalog),
):
    return {"events": catalog.list_events(venue_id, status, date_from, date_to)}


@router.get("/{event_id}")
def get_event(event_id: int, catalog: EventCatalog = Depends(get_event_catalog)):
    return {"event": catalog.get_event(event_id)}


@router.patch("/{event_id}/status")
def update_event_status(event_id: int, body: EventStatusIn, catalog: EventCatalog = Depends(get_event_catalog)):
    """Move an event to another workflow status."""
    return {"event": catalog.update_status(event_id, body.status)}
