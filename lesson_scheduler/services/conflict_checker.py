from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from lesson_scheduler.core.errors import ConflictError, ConflictReason
from lesson_scheduler.core.schedule_lock import teacher_day_lock
from lesson_scheduler.models import Booking, Weekday
from lesson_scheduler.services.availability_store import AvailabilityStore
from lesson_scheduler.services.interval_math import coerce_interval, overlaps

if TYPE_CHECKING:
    from lesson_scheduler.services.booking_store import BookingStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentResult:
    ok: bool
    reason: ConflictReason | None = None
    conflicts: tuple[Booking, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        return {
            'ok': self.ok,
            'reason': self.reason.value if self.reason else None,
            'conflicts': [
                {
                    'id': row.id,
                    'student_id': row.student_id,
                    'start_time': row.start_time,
                    'end_time': row.end_time,
                }
                for row in self.conflicts
            ],
        }


class ConflictChecker:
    def __init__(self, availability: AvailabilityStore, bookings: BookingStore) -> None:
        self.availability = availability
        self.bookings = bookings

    @property
    def teacher_id(self) -> str:
        return self.bookings.teacher_id

    def is_within_availability(self, weekday: Weekday | int | str, start: int | str, end: int | str) -> bool:
        day = Weekday.parse(weekday)
        start_minute, end_minute = coerce_interval(start, end)
        return any(block.contains(start_minute, end_minute) for block in self.availability.blocks_for_day(day))

    def conflicting_bookings(
        self,
        weekday: Weekday | int | str,
        start: int | str,
        end: int | str,
        exclude_booking_id: str | None = None,
    ) -> list[Booking]:
        day = Weekday.parse(weekday)
        start_minute, end_minute = coerce_interval(start, end)
        return [
            row
            for row in self.bookings.bookings_for_day(day)
            if row.id != exclude_booking_id and overlaps(start_minute, end_minute, row.start_minute, row.end_minute)
        ]

    def has_booking_conflict(
        self,
        weekday: Weekday | int | str,
        start: int | str,
        end: int | str,
        exclude_booking_id: str | None = None,
    ) -> bool:
        return bool(self.conflicting_bookings(weekday, start, end, exclude_booking_id))

    def validate_assignment(
        self,
        weekday: Weekday | int | str,
        start: int | str,
        end: int | str,
        exclude_id: str | None = None,
    ) -> AssignmentResult:
        day = Weekday.parse(weekday)
        start_minute, end_minute = coerce_interval(start, end)
        with teacher_day_lock(self.teacher_id, day):
            if not self.is_within_availability(day, start_minute, end_minute):
                return AssignmentResult(ok=False, reason=ConflictReason.OUT_OF_AVAILABILITY)
            conflicts = self.conflicting_bookings(day, start_minute, end_minute, exclude_id)
            if conflicts:
                return AssignmentResult(ok=False, reason=ConflictReason.OVERLAPS_BOOKING, conflicts=tuple(conflicts))
        return AssignmentResult(ok=True)

    def ensure_assignment(
        self,
        weekday: Weekday | int | str,
        start: int | str,
        end: int | str,
        exclude_id: str | None = None,
    ) -> None:
        result = self.validate_assignment(weekday, start, end, exclude_id)
        if result.ok:
            return
        logger.info(
            'assignment_rejected teacher_id=%s weekday=%s start=%s end=%s reason=%s',
            self.teacher_id,
            Weekday.parse(weekday).name,
            start,
            end,
            result.reason.value,
        )
        raise ConflictError(result.reason, conflicts=list(result.conflicts))
