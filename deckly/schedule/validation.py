"""Validation of a proposed run of show slot list.

A slot list is always checked as a whole. Checks run in a fixed order so the
caller gets the same error for the same input:

1. per-slot fields (times, name, capacity, notes) and slot id uniqueness
2. pairwise overlap of slot windows
3. slot capacity (`max_djs`)
4. duplicate DJs inside a slot
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from itertools import combinations
from typing import List, Optional, Dict, Any, Tuple

from ..errors import (
    ValidationError, OverlappingSlotsError, SlotCapacityError, DuplicateAssignmentError
)
from ..models import TimeSlot, DJAssignment, SlotType, BookingStatus
from ..utils.time_of_day import normalize_time, project_interval, windows_overlap

MAX_SLOT_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 500


@dataclass
class AssignmentDraft:
    """A DJ assignment as it will be written."""
    dj_id: int
    status: BookingStatus = BookingStatus.PENDING
    notification_sent: bool = False
    notification_sent_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, assignment: DJAssignment) -> 'AssignmentDraft':
        return cls(
            dj_id=assignment.dj_id,
            status=assignment.status,
            notification_sent=assignment.notification_sent,
            notification_sent_at=assignment.notification_sent_at,
            confirmed_at=assignment.confirmed_at,
            notes=assignment.notes,
        )


@dataclass
class TimeSlotDraft:
    """A time slot as it will be written. `id` is kept when the slot already exists."""
    slot_name: str
    start_time: str
    end_time: str
    slot_type: SlotType = SlotType.MAIN
    max_djs: Optional[int] = None
    notes: Optional[str] = None
    dj_assignments: List[AssignmentDraft] = field(default_factory=list)
    id: Optional[str] = None

    @classmethod
    def from_model(cls, slot: TimeSlot) -> 'TimeSlotDraft':
        return cls(
            id=slot.id,
            slot_name=slot.slot_name,
            slot_type=slot.slot_type,
            start_time=slot.start_time,
            end_time=slot.end_time,
            max_djs=slot.max_djs,
            notes=slot.notes,
            dj_assignments=[AssignmentDraft.from_model(a) for a in slot.dj_assignments],
        )

    def summary(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'slot_name': self.slot_name,
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


def _check_fields(slot: TimeSlotDraft) -> TimeSlotDraft:
    """Validate one slot's own fields and return it with normalized times."""
    name = (slot.slot_name or '').strip()
    if not name:
        raise ValidationError("Please provide a slot name")
    if len(name) > MAX_SLOT_NAME_LENGTH:
        raise ValidationError(
            f"Slot name cannot be more than {MAX_SLOT_NAME_LENGTH} characters",
            details={'slot_name': name},
        )

    try:
        slot_type = SlotType(slot.slot_type)
    except ValueError:
        raise ValidationError(
            f"Invalid slot type '{slot.slot_type}'",
            details={'allowed': [t.value for t in SlotType]},
        )

    start_time = normalize_time(slot.start_time)
    end_time = normalize_time(slot.end_time)
    if start_time == end_time:
        raise ValidationError(
            f"Time slot '{name}' starts and ends at {start_time}",
            details={'slot_name': name, 'start_time': start_time, 'end_time': end_time},
        )

    if slot.max_djs is not None and slot.max_djs < 1:
        raise ValidationError(
            f"Time slot '{name}' must allow at least one DJ",
            details={'slot_name': name, 'max_djs': slot.max_djs},
        )

    assignments = []
    for assignment in slot.dj_assignments:
        try:
            assignments.append(replace(assignment, status=BookingStatus(assignment.status)))
        except ValueError:
            raise ValidationError(
                f"Invalid booking status '{assignment.status}'",
                details={'dj_id': assignment.dj_id},
            )

    notes = [slot.notes] + [a.notes for a in slot.dj_assignments]
    if any(n and len(n) > MAX_NOTES_LENGTH for n in notes):
        raise ValidationError(f"Notes cannot be more than {MAX_NOTES_LENGTH} characters")

    return replace(
        slot,
        slot_name=name,
        slot_type=slot_type,
        start_time=start_time,
        end_time=end_time,
        dj_assignments=assignments,
    )


def _window(slot: TimeSlotDraft, anchor: str) -> Tuple[int, int]:
    return project_interval(slot.start_time, slot.end_time, anchor)


def validate_time_slots(slots: List[TimeSlotDraft], anchor: str = "00:00") -> List[TimeSlotDraft]:
    """
    Validate a complete proposed slot list.

    Args:
        slots: Every slot of the run of show, in storage order
        anchor: Local time the schedule's timeline starts at (the event start)

    Returns:
        List[TimeSlotDraft]: The slots with trimmed names and zero-padded times

    Raises:
        InvalidTimeError: If a time is not HH:MM
        ValidationError: If a field is invalid or two slots share an id
        OverlappingSlotsError: If two slot windows overlap
        SlotCapacityError: If a slot holds more DJs than its max_djs
        DuplicateAssignmentError: If a DJ appears twice in one slot
    """
    checked = [_check_fields(slot) for slot in slots]

    seen_ids = set()
    for slot in checked:
        if slot.id is None:
            continue
        if slot.id in seen_ids:
            raise ValidationError(
                "Two time slots share the same id",
                details={'slot_id': slot.id},
            )
        seen_ids.add(slot.id)

    windows = [_window(slot, anchor) for slot in checked]
    for i, j in combinations(range(len(checked)), 2):
        if windows_overlap(windows[i], windows[j]):
            raise OverlappingSlotsError(checked[i].summary(), checked[j].summary())

    for slot in checked:
        if slot.max_djs is not None and len(slot.dj_assignments) > slot.max_djs:
            raise SlotCapacityError(
                f"Time slot '{slot.slot_name}' allows at most {slot.max_djs} DJ(s)",
                details={
                    'slot_name': slot.slot_name,
                    'max_djs': slot.max_djs,
                    'assigned': len(slot.dj_assignments),
                },
            )

    for slot in checked:
        dj_ids = [a.dj_id for a in slot.dj_assignments]
        duplicates = sorted({dj_id for dj_id in dj_ids if dj_ids.count(dj_id) > 1})
        if duplicates:
            raise DuplicateAssignmentError(
                f"A DJ is assigned more than once to time slot '{slot.slot_name}'",
                details={'slot_name': slot.slot_name, 'dj_ids': duplicates},
            )

    return checked


def sort_for_display(slots: List[Dict[str, Any]], anchor: str = "00:00") -> List[Dict[str, Any]]:
    """Order serialized slots by start time on the event's timeline."""
    return sorted(
        slots,
        key=lambda slot: project_interval(slot['start_time'], slot['end_time'], anchor)[0],
    )
