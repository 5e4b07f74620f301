from __future__ import annotations

import logging
import threading
import uuid
from contextlib import ExitStack
from dataclasses import replace
from typing import Iterable

from lesson_scheduler.core.errors import ConflictError, ConflictReason, NotFoundError, ValidationError
from lesson_scheduler.core.schedule_lock import teacher_day_lock
from lesson_scheduler.models import Booking, Weekday
from lesson_scheduler.services.availability_store import AvailabilityStore
from lesson_scheduler.services.conflict_checker import ConflictChecker
from lesson_scheduler.services.interval_math import coerce_interval, overlaps


logger = logging.getLogger(__name__)


class BookingStore:
    """Committed lessons for one teacher.

    Every write validates against the current ledgers while holding the
    teacher+weekday lock, so two callers can never both claim the same free
    interval.
    """

    def __init__(self, teacher_id: str, availability: AvailabilityStore) -> None:
        self.teacher_id = str(teacher_id)
        self.availability = availability
        self.checker = ConflictChecker(availability, self)
        self._lock = threading.RLock()
        self._bookings: dict[str, Booking] = {}

    def add(self, booking: Booking) -> Booking:
        row = self._prepare(booking)
        with teacher_day_lock(self.teacher_id, row.weekday):
            self.checker.ensure_assignment(row.weekday, row.start_minute, row.end_minute)
            with self._lock:
                if row.id in self._bookings:
                    raise ValidationError(f'Booking {row.id} already exists')
                self._bookings[row.id] = row
        logger.info(
            'booking_committed teacher_id=%s booking_id=%s student_id=%s weekday=%s start=%s end=%s',
            self.teacher_id,
            row.id,
            row.student_id,
            row.weekday.name,
            row.start_time,
            row.end_time,
        )
        return row

    def assign(
        self,
        student_id: str,
        weekday: Weekday | int | str,
        start: int | str,
        end: int | str,
        *,
        location: str | None = None,
        booking_id: str = '',
    ) -> Booking:
        start_minute, end_minute = coerce_interval(start, end)
        return self.add(
            Booking(
                id=booking_id,
                weekday=Weekday.parse(weekday),
                start_minute=start_minute,
                end_minute=end_minute,
                student_id=student_id,
                teacher_id=self.teacher_id,
                location=location,
            )
        )

    def move(self, booking_id: str, weekday: Weekday | int | str, start: int | str, end: int | str) -> Booking:
        day = Weekday.parse(weekday)
        start_minute, end_minute = coerce_interval(start, end)
        while True:
            current = self.get(booking_id)
            # Lock both weekdays in a fixed order when a lesson changes day.
            first, second = sorted((current.weekday, day))
            with teacher_day_lock(self.teacher_id, first), teacher_day_lock(self.teacher_id, second):
                current = self.get(booking_id)
                if current.weekday not in (first, second):
                    # Moved concurrently to a day whose lock is not held.
                    continue
                self.checker.ensure_assignment(day, start_minute, end_minute, exclude_id=booking_id)
                moved = replace(
                    current,
                    weekday=day,
                    start_minute=start_minute,
                    end_minute=end_minute,
                    duration_minutes=0,
                )
                with self._lock:
                    self._bookings[booking_id] = moved
            break
        logger.info(
            'booking_moved teacher_id=%s booking_id=%s from=%s:%s to=%s:%s',
            self.teacher_id,
            booking_id,
            current.weekday.name,
            current.start_time,
            day.name,
            moved.start_time,
        )
        return moved

    def load(self, bookings: Iterable[Booking]) -> list[Booking]:
        """Ingest existing rows from persistence.

        Rows outside availability are kept (older data predates the
        availability rules); overlapping rows are still refused. The batch is
        all or nothing: any rejected row leaves the ledger untouched.
        """
        rows = [self._prepare(booking) for booking in bookings]
        ids = [row.id for row in rows]
        if len(set(ids)) != len(ids):
            raise ValidationError('Duplicate booking ids in batch')
        for index, row in enumerate(rows):
            clashes = [
                other
                for other in rows[index + 1:]
                if other.weekday == row.weekday
                and overlaps(row.start_minute, row.end_minute, other.start_minute, other.end_minute)
            ]
            if clashes:
                raise ConflictError(ConflictReason.OVERLAPS_BOOKING, conflicts=[row, *clashes])

        with ExitStack() as stack:
            for day in sorted({row.weekday for row in rows}):
                stack.enter_context(teacher_day_lock(self.teacher_id, day))
            for row in rows:
                conflicts = self.checker.conflicting_bookings(row.weekday, row.start_minute, row.end_minute)
                if conflicts:
                    raise ConflictError(ConflictReason.OVERLAPS_BOOKING, conflicts=conflicts)
            with self._lock:
                for row in rows:
                    if row.id in self._bookings:
                        raise ValidationError(f'Booking {row.id} already exists')
                self._bookings.update((row.id, row) for row in rows)
            for row in rows:
                if not self.checker.is_within_availability(row.weekday, row.start_minute, row.end_minute):
                    logger.warning(
                        'booking_outside_availability teacher_id=%s booking_id=%s weekday=%s start=%s end=%s',
                        self.teacher_id,
                        row.id,
                        row.weekday.name,
                        row.start_time,
                        row.end_time,
                    )
        logger.info('bookings_loaded teacher_id=%s count=%s', self.teacher_id, len(rows))
        return rows

    def remove(self, booking_id: str) -> Booking:
        with self._lock:
            row = self._bookings.pop(booking_id, None)
        if row is None:
            raise NotFoundError(f'Booking {booking_id} not found')
        logger.info('booking_removed teacher_id=%s booking_id=%s', self.teacher_id, booking_id)
        return row

    def get(self, booking_id: str) -> Booking:
        with self._lock:
            row = self._bookings.get(booking_id)
        if row is None:
            raise NotFoundError(f'Booking {booking_id} not found')
        return row

    def bookings_for_day(self, weekday: Weekday | int | str) -> list[Booking]:
        day = Weekday.parse(weekday)
        with self._lock:
            rows = [row for row in self._bookings.values() if row.weekday == day]
        rows.sort(key=lambda row: (row.start_minute, row.end_minute))
        return rows

    def all_bookings(self) -> list[Booking]:
        with self._lock:
            rows = list(self._bookings.values())
        rows.sort(key=lambda row: (row.weekday, row.start_minute))
        return rows

    def overlapping_pairs(self) -> list[tuple[Booking, Booking]]:
        pairs: list[tuple[Booking, Booking]] = []
        for weekday in Weekday:
            rows = self.bookings_for_day(weekday)
            for index, first in enumerate(rows):
                for second in rows[index + 1:]:
                    if overlaps(first.start_minute, first.end_minute, second.start_minute, second.end_minute):
                        pairs.append((first, second))
        return pairs

    def _prepare(self, booking: Booking) -> Booking:
        if not isinstance(booking, Booking):
            raise ValidationError('Booking expected')
        if booking.teacher_id != self.teacher_id:
            raise ValidationError(f'Booking belongs to teacher {booking.teacher_id}, not {self.teacher_id}')
        return booking if booking.id else replace(booking, id=uuid.uuid4().hex)
