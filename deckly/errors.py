"""Domain errors raised by the scheduling and import services.

Every error carries a stable `code`, a user-safe `message` and an optional
`details` mapping. The API layer maps each family to an HTTP status.
"""

from typing import Any, Dict, Optional


class DecklyError(Exception):
    """Base exception for all domain errors."""

    code = "DECKLY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(DecklyError):
    """Raised when a proposed write breaks a domain invariant. The whole write is rejected."""

    code = "VALIDATION_ERROR"


class InvalidTimeError(ValidationError):
    """Raised when a wall-clock time is not a valid HH:MM value."""

    code = "INVALID_TIME"


class OverlappingSlotsError(ValidationError):
    """Raised when two time slots of one run of show overlap."""

    code = "OVERLAPPING_SLOTS"

    def __init__(self, first: Dict[str, Any], second: Dict[str, Any]):
        super().__init__(
            f"Time slots '{first['slot_name']}' ({first['start_time']}-{first['end_time']}) and "
            f"'{second['slot_name']}' ({second['start_time']}-{second['end_time']}) overlap",
            details={'slots': [first, second]},
        )
        self.first = first
        self.second = second


class SlotCapacityError(ValidationError):
    """Raised when a slot holds more DJ assignments than its max_djs."""

    code = "SLOT_CAPACITY_EXCEEDED"


class DuplicateAssignmentError(ValidationError):
    """Raised when one DJ appears more than once in a slot's assignments."""

    code = "DUPLICATE_ASSIGNMENT"


class AlreadyAssignedError(ValidationError):
    """Raised when assigning a DJ who already holds an assignment in the slot."""

    code = "ALREADY_ASSIGNED"

    def __init__(self, slot_id: str, dj_id: int):
        super().__init__(
            "This DJ is already assigned to this slot",
            details={'slot_id': slot_id, 'dj_id': dj_id},
        )


class InvalidTransitionError(ValidationError):
    """Raised when an assignment status change is not allowed."""

    code = "INVALID_TRANSITION"


class NotFoundError(DecklyError):
    """Raised when a referenced event, venue, DJ, slot or run of show does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} not found",
            details={'entity': entity, 'id': identifier},
        )
        self.entity = entity
        self.identifier = identifier


class ConflictError(DecklyError):
    """Raised when a write conflicts with the current state."""

    code = "CONFLICT"


class RunOfShowExistsError(ConflictError):
    """Raised when creating a run of show for an event that already has one."""

    code = "RUN_OF_SHOW_EXISTS"

    def __init__(self, event_id: int):
        super().__init__(
            "Run of show already exists for this event",
            details={'event_id': event_id},
        )


class StaleScheduleError(ConflictError):
    """Raised when the run of show changed between read and write."""

    code = "STALE_SCHEDULE"

    def __init__(self, event_id: int, expected_version: Optional[int], current_version: Optional[int]):
        super().__init__(
            "Run of show was modified by someone else; reload and try again",
            details={
                'event_id': event_id,
                'expected_version': expected_version,
                'current_version': current_version,
            },
        )


class DuplicateKeyError(ConflictError):
    """Raised when a unique value (e.g. a DJ email) is already taken."""

    code = "ALREADY_EXISTS"


class UnmappableEventError(DecklyError):
    """Raised when an external event record lacks the fields needed to build a local event."""

    code = "UNMAPPABLE_EVENT"


class ExternalAPIError(DecklyError):
    """Raised when the external ticketing API fails or cannot be reached."""

    code = "EXTERNAL_API_ERROR"


class AuthenticationError(DecklyError):
    """Raised when the caller has no valid verified identity."""

    code = "UNAUTHENTICATED"


class PermissionDeniedError(DecklyError):
    """Raised when the caller's role does not allow the operation."""

    code = "FORBIDDEN"
