from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Iterable

from lesson_scheduler.config import settings
from lesson_scheduler.core.errors import ValidationError
from lesson_scheduler.core.time_provider import TimeProvider, default_time_provider
from lesson_scheduler.models import AvailabilityBlock, Booking, StudentRecord, Weekday
from lesson_scheduler.services.interval_math import ceil_div, covered_minutes


StudentLookup = Callable[[str], StudentRecord | None]


@dataclass(frozen=True)
class ScheduledLesson:
    booking: Booking
    label: str
    render_span: int
    row_offset: int
    outside_availability: bool = False
    student: StudentRecord | None = None


@dataclass(frozen=True)
class DaySchedule:
    date: date
    weekday: Weekday
    lessons: tuple[ScheduledLesson, ...]
    blocks: tuple[AvailabilityBlock, ...]
    available_minutes: int
    booked_minutes: int


@dataclass(frozen=True)
class WeekSchedule:
    week_start_date: date
    slot_granularity: int
    days: tuple[DaySchedule, ...]


def current_week_start(time_provider: TimeProvider = default_time_provider) -> date:
    return time_provider.current_week_start()


def _lesson_label(booking: Booking, student: StudentRecord | None) -> str:
    if student is None:
        return booking.student_id
    if student.instrument:
        return f'{student.name} ({student.instrument})'
    return student.name


def build_week(
    week_start_date: date,
    availability: Iterable[AvailabilityBlock],
    bookings: Iterable[Booking],
    *,
    slot_granularity: int | None = None,
    student_lookup: StudentLookup | None = None,
) -> WeekSchedule:
    if Weekday.from_date(week_start_date) != Weekday.SUNDAY:
        raise ValidationError(f'week_start_date must be a Sunday, got {week_start_date.isoformat()}')
    granularity = int(slot_granularity or settings.slot_granularity_minutes)
    if granularity <= 0:
        raise ValidationError('slot_granularity must be positive')

    blocks = list(availability)
    rows = list(bookings)
    students: dict[str, StudentRecord | None] = {}

    days: list[DaySchedule] = []
    for offset in range(7):
        day = week_start_date + timedelta(days=offset)
        weekday = Weekday.from_date(day)
        day_blocks = sorted(
            (block for block in blocks if block.available_on(day)),
            key=lambda block: block.start_minute,
        )
        day_bookings = sorted(
            (row for row in rows if row.weekday == weekday),
            key=lambda row: (row.start_minute, row.end_minute),
        )
        lessons: list[ScheduledLesson] = []
        for booking in day_bookings:
            if student_lookup is not None and booking.student_id not in students:
                students[booking.student_id] = student_lookup(booking.student_id)
            student = students.get(booking.student_id)
            # Older bookings may sit outside today's availability; flag, don't fail.
            inside = any(block.contains(booking.start_minute, booking.end_minute) for block in day_blocks)
            lessons.append(
                ScheduledLesson(
                    booking=booking,
                    label=_lesson_label(booking, student),
                    render_span=max(1, ceil_div(booking.duration_minutes, granularity)),
                    row_offset=booking.start_minute // granularity,
                    outside_availability=not inside,
                    student=student,
                )
            )
        days.append(
            DaySchedule(
                date=day,
                weekday=weekday,
                lessons=tuple(lessons),
                blocks=tuple(day_blocks),
                available_minutes=covered_minutes([(block.start_minute, block.end_minute) for block in day_blocks]),
                booked_minutes=sum(row.duration_minutes for row in day_bookings),
            )
        )
    return WeekSchedule(week_start_date=week_start_date, slot_granularity=granularity, days=tuple(days))


def serialize_week(week: WeekSchedule) -> dict[str, Any]:
    return {
        'week_start': week.week_start_date.isoformat(),
        'slot_granularity': week.slot_granularity,
        'days': [
            {
                'date': day.date.isoformat(),
                'weekday': int(day.weekday),
                'weekday_name': day.weekday.label,
                'available_minutes': day.available_minutes,
                'booked_minutes': day.booked_minutes,
                'blocks': [
                    {
                        'id': block.id,
                        'start_time': block.start_time,
                        'end_time': block.end_time,
                        'location': block.location,
                    }
                    for block in day.blocks
                ],
                'lessons': [
                    {
                        'id': lesson.booking.id,
                        'student_id': lesson.booking.student_id,
                        'label': lesson.label,
                        'instrument': lesson.student.instrument if lesson.student else None,
                        'start_time': lesson.booking.start_time,
                        'end_time': lesson.booking.end_time,
                        'duration_minutes': lesson.booking.duration_minutes,
                        'location': lesson.booking.location,
                        'render_span': lesson.render_span,
                        'row_offset': lesson.row_offset,
                        'outside_availability': lesson.outside_availability,
                    }
                    for lesson in day.lessons
                ],
            }
            for day in week.days
        ],
    }
