"""Run of show service.

Every change to a schedule goes through one write path: load the current
slot list, compose the new list, validate it as a whole and replace the
stored slots. Assigning, removing and re-statusing DJs are compositions on
top of that path. Writes are guarded by the run of show's version counter.
"""

import logging
from typing import Callable, Dict, Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..db import Database
from ..errors import (
    AlreadyAssignedError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    RunOfShowExistsError,
    StaleScheduleError,
)
from ..models import (
    DJ, DJAssignment, Event, RunOfShow, TimeSlot, BookingStatus
)
from ..models.run_of_show import new_slot_id
from ..utils.retry import with_retry
from ..utils.timezone import now_utc
from .validation import AssignmentDraft, TimeSlotDraft, validate_time_slots, sort_for_display

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.DECLINED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.DECLINED},
    BookingStatus.DECLINED: set(),
    BookingStatus.CANCELLED: set(),
}

SlotChange = Callable[[List[TimeSlotDraft]], List[TimeSlotDraft]]


def _find_slot(slots: List[TimeSlotDraft], slot_id: str) -> TimeSlotDraft:
    for slot in slots:
        if slot.id == slot_id:
            return slot
    raise NotFoundError('Time slot', slot_id)


def _find_assignment(slot: TimeSlotDraft, dj_id: int) -> AssignmentDraft:
    for assignment in slot.dj_assignments:
        if assignment.dj_id == dj_id:
            return assignment
    raise NotFoundError('DJ assignment', dj_id)


class RunOfShowService:
    """Reads and writes the run of show of an event. Run of shows are addressed by event id."""

    def __init__(self, db: Database):
        self.db = db

    # Reads

    def get_run_of_show(self, event_id: int) -> Optional[Dict[str, Any]]:
        """
        Get the run of show of an event.

        Returns:
            Optional[Dict[str, Any]]: The schedule with slots sorted for display,
            or None if the event has no run of show yet

        Raises:
            NotFoundError: If the event does not exist
        """
        with self.db.session() as session:
            self._get_event(session, event_id)
            run_of_show = self._load(session, event_id)
            return self._serialize(run_of_show) if run_of_show else None

    def get_or_create_run_of_show(self, event_id: int) -> Dict[str, Any]:
        """Get the run of show of an event, creating an empty one on first access."""
        existing = self.get_run_of_show(event_id)
        if existing is not None:
            return existing
        try:
            return self.create_run_of_show(event_id)
        except RunOfShowExistsError:
            # Created by a concurrent request in between
            return self.get_run_of_show(event_id)

    def list_bookings_for_dj(self, dj_id: int) -> List[Dict[str, Any]]:
        """
        List every event in which a DJ holds an assignment.

        Returns:
            List[Dict[str, Any]]: One entry per event, sorted by event date and
            start time, each with the DJ's slots and assignment state
        """
        with self.db.session() as session:
            rows = (
                session.query(DJAssignment, TimeSlot, RunOfShow, Event)
                .join(TimeSlot, DJAssignment.time_slot_id == TimeSlot.id)
                .join(RunOfShow, TimeSlot.run_of_show_id == RunOfShow.id)
                .join(Event, RunOfShow.event_id == Event.id)
                .filter(DJAssignment.dj_id == dj_id)
                .all()
            )

            bookings: Dict[int, Dict[str, Any]] = {}
            for assignment, slot, run_of_show, event in rows:
                booking = bookings.setdefault(event.id, {
                    'event': event.to_dict(),
                    'run_of_show_id': run_of_show.id,
                    'run_of_show_version': run_of_show.version,
                    'slots': [],
                })
                slot_data = slot.to_dict()
                slot_data.pop('dj_assignments')
                slot_data['assignment'] = assignment.to_dict()
                booking['slots'].append(slot_data)

            for booking in bookings.values():
                booking['slots'] = sort_for_display(booking['slots'], booking['event']['start_time'])

            return sorted(
                bookings.values(),
                key=lambda b: (b['event']['date'], b['event']['start_time'], b['event']['id']),
            )

    # Writes

    def create_run_of_show(self, event_id: int, slots: Optional[List[TimeSlotDraft]] = None) -> Dict[str, Any]:
        """
        Create the run of show of an event.

        Args:
            event_id: The event to schedule
            slots: Initial slot list (validated like any replacement)

        Raises:
            NotFoundError: If the event does not exist
            RunOfShowExistsError: If the event already has a run of show
        """
        with self.db.session() as session:
            event = self._get_event(session, event_id)
            if self._load(session, event_id) is not None:
                raise RunOfShowExistsError(event_id)

            run_of_show = RunOfShow(event=event, event_id=event_id)
            session.add(run_of_show)
            try:
                session.flush()
            except IntegrityError as e:
                raise RunOfShowExistsError(event_id) from e

            if slots:
                self._write_slots(session, run_of_show, slots)

            logger.info(f"Created run of show for event {event_id} with {len(slots or [])} slot(s)")
            return self._serialize(run_of_show)

    def delete_run_of_show(self, event_id: int) -> None:
        """Delete an event's run of show with all slots and assignments."""
        with self.db.session() as session:
            run_of_show = self._require(session, event_id)
            session.delete(run_of_show)
            logger.info(f"Deleted run of show for event {event_id}")

    def replace_time_slots(
        self,
        event_id: int,
        slots: List[TimeSlotDraft],
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Replace the whole slot list of an event's run of show.

        The proposed list is validated as a whole; nothing is written unless
        every check passes.

        Args:
            event_id: The event whose schedule is replaced
            slots: The complete new slot list
            expected_version: Version the caller based its edit on (optional)

        Raises:
            NotFoundError: If the event, run of show or a referenced DJ does not exist
            ValidationError: If the slot list is invalid (overlap, capacity, duplicates, fields)
            StaleScheduleError: If the schedule changed since `expected_version`
        """
        return self._mutate(event_id, lambda _: slots, expected_version)

    def assign_dj(
        self,
        event_id: int,
        slot_id: str,
        dj_id: int,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Add a pending assignment for a DJ to a slot.

        Raises:
            AlreadyAssignedError: If the DJ already holds an assignment in the slot
            SlotCapacityError: If the slot is full
        """
        def change(slots: List[TimeSlotDraft]) -> List[TimeSlotDraft]:
            slot = _find_slot(slots, slot_id)
            if any(a.dj_id == dj_id for a in slot.dj_assignments):
                raise AlreadyAssignedError(slot_id, dj_id)
            slot.dj_assignments.append(AssignmentDraft(dj_id=dj_id, notes=notes))
            return slots

        result = self._mutate(event_id, change, expected_version)
        logger.info(f"Assigned DJ {dj_id} to slot {slot_id} of event {event_id}")
        return result

    def remove_dj(
        self,
        event_id: int,
        slot_id: str,
        dj_id: int,
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """Remove a DJ's assignment from a slot."""
        def change(slots: List[TimeSlotDraft]) -> List[TimeSlotDraft]:
            slot = _find_slot(slots, slot_id)
            assignment = _find_assignment(slot, dj_id)
            slot.dj_assignments.remove(assignment)
            return slots

        return self._mutate(event_id, change, expected_version)

    def delete_slot(
        self,
        event_id: int,
        slot_id: str,
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """Delete a slot and its assignments."""
        def change(slots: List[TimeSlotDraft]) -> List[TimeSlotDraft]:
            slot = _find_slot(slots, slot_id)
            return [s for s in slots if s is not slot]

        return self._mutate(event_id, change, expected_version)

    def update_assignment_status(
        self,
        event_id: int,
        slot_id: str,
        dj_id: int,
        status: BookingStatus,
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Move a DJ assignment to a new booking status.

        Setting the status an assignment already has leaves it unchanged.
        Confirming stamps `confirmed_at`.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        status = BookingStatus(status)

        def change(slots: List[TimeSlotDraft]) -> List[TimeSlotDraft]:
            assignment = _find_assignment(_find_slot(slots, slot_id), dj_id)
            if assignment.status == status:
                return slots
            if status not in ALLOWED_TRANSITIONS[assignment.status]:
                raise InvalidTransitionError(
                    f"Cannot change booking from {assignment.status.value} to {status.value}",
                    details={'from': assignment.status.value, 'to': status.value},
                )
            assignment.status = status
            if status == BookingStatus.CONFIRMED:
                assignment.confirmed_at = now_utc()
            return slots

        result = self._mutate(event_id, change, expected_version)
        logger.info(f"Booking of DJ {dj_id} in slot {slot_id} of event {event_id} is now {status.value}")
        return result

    def mark_notification_sent(self, event_id: int, slot_id: str, dj_id: int) -> Dict[str, Any]:
        """Record that the DJ was notified about an assignment."""
        def change(slots: List[TimeSlotDraft]) -> List[TimeSlotDraft]:
            assignment = _find_assignment(_find_slot(slots, slot_id), dj_id)
            assignment.notification_sent = True
            assignment.notification_sent_at = now_utc()
            return slots

        return self._mutate(event_id, change)

    # Internals

    @with_retry()
    def _mutate(
        self,
        event_id: int,
        change: SlotChange,
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        with self.db.session() as session:
            run_of_show = self._require(session, event_id)
            if expected_version is not None and expected_version != run_of_show.version:
                raise StaleScheduleError(event_id, expected_version, run_of_show.version)

            current = [TimeSlotDraft.from_model(slot) for slot in run_of_show.time_slots]
            self._write_slots(session, run_of_show, change(current))
            return self._serialize(run_of_show)

    def _write_slots(self, session: Session, run_of_show: RunOfShow, slots: List[TimeSlotDraft]) -> None:
        checked = validate_time_slots(slots, anchor=run_of_show.event.start_time)
        self._check_djs_exist(session, checked)

        # Ids the client made up are replaced; ids of this schedule's slots are kept
        own_ids = {slot.id for slot in run_of_show.time_slots}
        # A failed flush leaves the instance unreadable until rollback
        event_id = run_of_show.event_id
        read_version = run_of_show.version

        try:
            run_of_show.time_slots.clear()
            run_of_show.updated_at = now_utc()
            session.flush()
            run_of_show.time_slots.extend(
                self._build_slot(slot, keep_id=slot.id in own_ids) for slot in checked
            )
            session.flush()
        except StaleDataError as e:
            raise StaleScheduleError(event_id, read_version, None) from e
        except IntegrityError as e:
            raise ConflictError(
                "Time slots could not be saved because of a conflicting change",
                details={'event_id': event_id},
            ) from e

    @staticmethod
    def _build_slot(draft: TimeSlotDraft, keep_id: bool) -> TimeSlot:
        return TimeSlot(
            id=draft.id if keep_id else new_slot_id(),
            slot_name=draft.slot_name,
            slot_type=draft.slot_type,
            start_time=draft.start_time,
            end_time=draft.end_time,
            max_djs=draft.max_djs,
            notes=draft.notes,
            dj_assignments=[
                DJAssignment(
                    dj_id=a.dj_id,
                    status=a.status,
                    notification_sent=a.notification_sent,
                    notification_sent_at=a.notification_sent_at,
                    confirmed_at=a.confirmed_at,
                    notes=a.notes,
                )
                for a in draft.dj_assignments
            ],
        )

    @staticmethod
    def _check_djs_exist(session: Session, slots: List[TimeSlotDraft]) -> None:
        wanted = {a.dj_id for slot in slots for a in slot.dj_assignments}
        if not wanted:
            return
        found = {dj_id for (dj_id,) in session.query(DJ.id).filter(DJ.id.in_(wanted))}
        missing = sorted(wanted - found)
        if missing:
            raise NotFoundError('DJ', missing[0])

    @staticmethod
    def _get_event(session: Session, event_id: int) -> Event:
        event = session.get(Event, event_id)
        if event is None:
            raise NotFoundError('Event', event_id)
        return event

    @staticmethod
    def _load(session: Session, event_id: int) -> Optional[RunOfShow]:
        return session.query(RunOfShow).filter(RunOfShow.event_id == event_id).one_or_none()

    def _require(self, session: Session, event_id: int) -> RunOfShow:
        self._get_event(session, event_id)
        run_of_show = self._load(session, event_id)
        if run_of_show is None:
            raise NotFoundError('Run of show', event_id)
        return run_of_show

    @staticmethod
    def _serialize(run_of_show: RunOfShow) -> Dict[str, Any]:
        data = run_of_show.to_dict()
        data['time_slots'] = sort_for_display(data['time_slots'], run_of_show.event.start_time)
        return data
