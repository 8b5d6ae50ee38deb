"""Run of show scheduling: slot validation and the schedule service."""

from .validation import AssignmentDraft, TimeSlotDraft, validate_time_slots, sort_for_display
from .service import RunOfShowService

__all__ = [
    'AssignmentDraft',
    'TimeSlotDraft',
    'validate_time_slots',
    'sort_for_display',
    'RunOfShowService',
]
