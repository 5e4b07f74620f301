from __future__ import annotations

from enum import Enum
from typing import Any


class ConflictReason(str, Enum):
    OUT_OF_AVAILABILITY = 'OUT_OF_AVAILABILITY'
    OVERLAPS_BOOKING = 'OVERLAPS_BOOKING'


class SchedulingError(ValueError):
    pass


class ValidationError(SchedulingError):
    pass


class NotFoundError(SchedulingError):
    pass


class ConflictError(SchedulingError):
    def __init__(self, reason: ConflictReason, message: str = '', *, conflicts: list[Any] | None = None) -> None:
        self.reason = ConflictReason(reason)
        self.conflicts = list(conflicts or [])
        super().__init__(message or _DEFAULT_MESSAGES[self.reason])


_DEFAULT_MESSAGES = {
    ConflictReason.OUT_OF_AVAILABILITY: 'Requested time is outside the teacher availability.',
    ConflictReason.OVERLAPS_BOOKING: 'Teacher already has a lesson booked at this time.',
}
