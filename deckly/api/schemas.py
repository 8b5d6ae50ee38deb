"""Request bodies."""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import BookingStatus, EventStatus, SlotType
from ..schedule import AssignmentDraft, TimeSlotDraft


class AssignmentIn(BaseModel):
    dj_id: int
    status: BookingStatus = BookingStatus.PENDING
    notification_sent: bool = False
    notification_sent_at: Optional[dt.datetime] = None
    confirmed_at: Optional[dt.datetime] = None
    notes: Optional[str] = None

    def to_draft(self) -> AssignmentDraft:
        return AssignmentDraft(
            dj_id=self.dj_id,
            status=self.status,
            notification_sent=self.notification_sent,
            notification_sent_at=self.notification_sent_at,
            confirmed_at=self.confirmed_at,
            notes=self.notes,
        )


class TimeSlotIn(BaseModel):
    id: Optional[str] = None
    slot_name: str
    slot_type: SlotType = SlotType.MAIN
    start_time: str
    end_time: str
    max_djs: Optional[int] = None
    notes: Optional[str] = None
    dj_assignments: List[AssignmentIn] = Field(default_factory=list)

    def to_draft(self) -> TimeSlotDraft:
        return TimeSlotDraft(
            id=self.id,
            slot_name=self.slot_name,
            slot_type=self.slot_type,
            start_time=self.start_time,
            end_time=self.end_time,
            max_djs=self.max_djs,
            notes=self.notes,
            dj_assignments=[a.to_draft() for a in self.dj_assignments],
        )


class RunOfShowIn(BaseModel):
    """Complete slot list of a run of show."""
    time_slots: List[TimeSlotIn] = Field(default_factory=list)
    expected_version: Optional[int] = None

    def drafts(self) -> List[TimeSlotDraft]:
        return [slot.to_draft() for slot in self.time_slots]


class AssignDJIn(BaseModel):
    dj_id: int
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class AssignmentStatusIn(BaseModel):
    status: BookingStatus
    expected_version: Optional[int] = None


class EventIn(BaseModel):
    name: str
    venue_id: int
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    description: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None


class EventStatusIn(BaseModel):
    status: EventStatus
