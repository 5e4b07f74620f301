from __future__ import annotations

import logging
from typing import Iterable

from lesson_scheduler.core.errors import ValidationError
from lesson_scheduler.models import Slot, Weekday
from lesson_scheduler.services.conflict_checker import AssignmentResult, ConflictChecker
from lesson_scheduler.services.interval_math import coerce_minutes, require_positive_duration


logger = logging.getLogger(__name__)


class SlotGenerator:
    def __init__(self, checker: ConflictChecker) -> None:
        self.checker = checker

    def generate_slots(self, weekday: Weekday | int | str, duration_minutes: int) -> list[Slot]:
        day = Weekday.parse(weekday)
        require_positive_duration(duration_minutes)

        slots: list[Slot] = []
        for block in self.checker.availability.blocks_for_day(day):
            candidate_start = block.start_minute
            # Whole windows only; a trailing remainder shorter than the lesson is dropped.
            while candidate_start + duration_minutes <= block.end_minute:
                candidate_end = candidate_start + duration_minutes
                if not self.checker.has_booking_conflict(day, candidate_start, candidate_end):
                    slots.append(
                        Slot(
                            weekday=day,
                            start_minute=candidate_start,
                            end_minute=candidate_end,
                            block_id=block.id,
                            location=block.location,
                        )
                    )
                candidate_start = candidate_end

        slots.sort(key=lambda row: row.start_minute)
        logger.debug(
            'slots_generated teacher_id=%s weekday=%s duration=%s count=%s',
            self.checker.teacher_id,
            day.name,
            duration_minutes,
            len(slots),
        )
        return slots

    def validate_arbitrary_start(
        self,
        weekday: Weekday | int | str,
        start_minute: int | str,
        duration_minutes: int,
    ) -> AssignmentResult:
        require_positive_duration(duration_minutes)
        start = coerce_minutes(start_minute)
        return self.checker.validate_assignment(weekday, start, start + duration_minutes)

    def suggest_slots(
        self,
        duration_minutes: int,
        *,
        weekdays: Iterable[Weekday | int | str] | None = None,
        limit: int | None = None,
    ) -> list[Slot]:
        if limit is not None and limit <= 0:
            raise ValidationError('limit must be positive')
        days = [Weekday.parse(value) for value in weekdays] if weekdays is not None else list(Weekday)
        suggestions: list[Slot] = []
        for day in days:
            suggestions.extend(self.generate_slots(day, duration_minutes))
            if limit is not None and len(suggestions) >= limit:
                return suggestions[:limit]
        return suggestions
