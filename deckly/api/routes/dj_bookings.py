"""Routes for DJs: their bookings and responses to them."""

from fastapi import APIRouter, Depends

from ...catalog import DJRoster
from ...errors import NotFoundError
from ...models import BookingStatus
from ...schedule import RunOfShowService
from ..dependencies import get_dj_roster, get_run_of_show_service, require_dj

router = APIRouter(prefix="/dj", tags=["dj"])


def _own_assignment(run_of_show: dict, slot_id: str, dj_id: int) -> dict:
    for slot in run_of_show["time_slots"]:
        if slot["id"] != slot_id:
            continue
        for assignment in slot["dj_assignments"]:
            if assignment["dj_id"] == dj_id:
                return assignment
    raise NotFoundError("DJ assignment", dj_id)


def _respond(event_id: int, slot_id: str, dj_id: int, status: BookingStatus, service: RunOfShowService) -> dict:
    run_of_show = service.update_assignment_status(event_id, slot_id, dj_id, status)
    return {
        "event_id": event_id,
        "slot_id": slot_id,
        "assignment": _own_assignment(run_of_show, slot_id, dj_id),
    }


@router.get("/profile")
def get_profile(dj_id: int = Depends(require_dj), roster: DJRoster = Depends(get_dj_roster)):
    """The caller's DJ profile with the number of active bookings."""
    return {"dj": roster.get_dj(dj_id)}


@router.get("/bookings")
def list_bookings(dj_id: int = Depends(require_dj), service: RunOfShowService = Depends(get_run_of_show_service)):
    """Every event the caller is booked for, soonest first."""
    return {"bookings": service.list_bookings_for_dj(dj_id)}


@router.post("/bookings/{event_id}/slots/{slot_id}/confirm")
def confirm_booking(
    event_id: int,
    slot_id: str,
    dj_id: int = Depends(require_dj),
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    return _respond(event_id, slot_id, dj_id, BookingStatus.CONFIRMED, service)


@router.post("/bookings/{event_id}/slots/{slot_id}/decline")
def decline_booking(
    event_id: int,
    slot_id: str,
    dj_id: int = Depends(require_dj),
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    return _respond(event_id, slot_id, dj_id, BookingStatus.DECLINED, service)
