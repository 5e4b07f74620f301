from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from lesson_scheduler.core.schedule_lock import clear_schedule_locks
from lesson_scheduler.services.availability_store import AvailabilityStore
from lesson_scheduler.services.booking_store import BookingStore
from lesson_scheduler.services.conflict_checker import ConflictChecker
from lesson_scheduler.services.slot_generator import SlotGenerator


logger = logging.getLogger(__name__)


@dataclass
class TeacherSchedule:
    teacher_id: str
    availability: AvailabilityStore
    bookings: BookingStore

    @property
    def checker(self) -> ConflictChecker:
        return self.bookings.checker

    @property
    def slots(self) -> SlotGenerator:
        return SlotGenerator(self.bookings.checker)


class ScheduleRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._schedules: dict[str, TeacherSchedule] = {}

    def stores_for(self, teacher_id: str) -> TeacherSchedule:
        key = str(teacher_id)
        with self._lock:
            schedule = self._schedules.get(key)
            if schedule is None:
                availability = AvailabilityStore(key)
                schedule = TeacherSchedule(
                    teacher_id=key,
                    availability=availability,
                    bookings=BookingStore(key, availability),
                )
                self._schedules[key] = schedule
                logger.debug('teacher_schedule_created teacher_id=%s', key)
            return schedule

    def reset(self) -> None:
        with self._lock:
            self._schedules.clear()
        clear_schedule_locks()


registry = ScheduleRegistry()


def get_registry() -> ScheduleRegistry:
    return registry
