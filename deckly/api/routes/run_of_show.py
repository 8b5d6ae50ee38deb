"""Admin routes for an event's run of show."""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from ...schedule import RunOfShowService
from ..dependencies import get_run_of_show_service, require_admin
from ..schemas import AssignDJIn, AssignmentStatusIn, RunOfShowIn

router = APIRouter(
    prefix="/admin/events/{event_id}/run-of-show",
    tags=["run-of-show"],
    dependencies=[Depends(require_admin)],
)


@router.get("")
def get_run_of_show(event_id: int, service: RunOfShowService = Depends(get_run_of_show_service)):
    """Get the event's run of show, creating an empty one on first access."""
    return {"run_of_show": service.get_or_create_run_of_show(event_id)}


@router.post("", status_code=201)
def create_run_of_show(
    event_id: int,
    body: Optional[RunOfShowIn] = None,
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    """Create the run of show, optionally with an initial slot list."""
    slots = body.drafts() if body else None
    return {"run_of_show": service.create_run_of_show(event_id, slots)}


@router.put("")
def replace_run_of_show(
    event_id: int,
    body: RunOfShowIn,
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    """Replace the complete slot list. Creates the run of show if the event has none."""
    service.get_or_create_run_of_show(event_id)
    return {"run_of_show": service.replace_time_slots(event_id, body.drafts(), body.expected_version)}


@router.delete("", status_code=204)
def delete_run_of_show(event_id: int, service: RunOfShowService = Depends(get_run_of_show_service)):
    service.delete_run_of_show(event_id)
    return Response(status_code=204)


@router.delete("/slots/{slot_id}")
def delete_slot(event_id: int, slot_id: str, service: RunOfShowService = Depends(get_run_of_show_service)):
    return {"run_of_show": service.delete_slot(event_id, slot_id)}


@router.post("/slots/{slot_id}/assignments", status_code=201)
def assign_dj(
    event_id: int,
    slot_id: str,
    body: AssignDJIn,
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    """Book a DJ into a slot as pending."""
    run_of_show = service.assign_dj(event_id, slot_id, body.dj_id, body.notes, body.expected_version)
    return {"run_of_show": run_of_show}


@router.patch("/slots/{slot_id}/assignments/{dj_id}")
def update_assignment_status(
    event_id: int,
    slot_id: str,
    dj_id: int,
    body: AssignmentStatusIn,
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    run_of_show = service.update_assignment_status(event_id, slot_id, dj_id, body.status, body.expected_version)
    return {"run_of_show": run_of_show}


@router.delete("/slots/{slot_id}/assignments/{dj_id}")
def remove_dj(
    event_id: int,
    slot_id: str,
    dj_id: int,
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    return {"run_of_show": service.remove_dj(event_id, slot_id, dj_id)}


@router.post("/slots/{slot_id}/assignments/{dj_id}/notification-sent")
def mark_notification_sent(
    event_id: int,
    slot_id: str,
    dj_id: int,
    service: RunOfShowService = Depends(get_run_of_show_service),
):
    """Record that the DJ has been told about the booking."""
    return {"run_of_show": service.mark_notification_sent(event_id, slot_id, dj_id)}
