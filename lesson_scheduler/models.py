from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum

from lesson_scheduler.core.errors import ValidationError
from lesson_scheduler.services.interval_math import coerce_minutes, minutes_to_time, require_positive_interval


class Weekday(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def parse(cls, value: Weekday | int | str) -> Weekday:
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValidationError(f'Invalid weekday: {value!r}')
        if isinstance(value, int):
            if 0 <= value <= 6:
                return cls(value)
            raise ValidationError(f'Invalid weekday: {value!r}')
        if isinstance(value, str):
            clean = value.strip().lower()
            if clean.isdigit():
                return cls.parse(int(clean))
            for member in cls:
                name = member.name.lower()
                if clean == name or clean == name[:3]:
                    return member
        raise ValidationError(f'Invalid weekday: {value!r}')

    @classmethod
    def from_date(cls, value: date) -> Weekday:
        # date.weekday() is Monday=0; buckets here are Sunday-first.
        return cls((value.weekday() + 1) % 7)

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class RecurrenceRule:
    is_recurring: bool = True
    exclude_dates: tuple[date, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'exclude_dates', tuple(sorted(set(self.exclude_dates))))

    def applies_on(self, day: date) -> bool:
        return day not in self.exclude_dates


@dataclass(frozen=True)
class AvailabilityBlock:
    weekday: Weekday
    start_minute: int
    end_minute: int
    id: str = ''
    location: str | None = None
    recurring: RecurrenceRule = field(default_factory=RecurrenceRule)
    notes: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, 'weekday', Weekday.parse(self.weekday))
        object.__setattr__(self, 'start_minute', coerce_minutes(self.start_minute))
        object.__setattr__(self, 'end_minute', coerce_minutes(self.end_minute, allow_end_of_day=True))
        require_positive_interval(self.start_minute, self.end_minute)

    @property
    def total_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minute)

    def contains(self, start: int, end: int) -> bool:
        return start >= self.start_minute and end <= self.end_minute

    def available_on(self, day: date) -> bool:
        if not self.is_active or Weekday.from_date(day) != self.weekday:
            return False
        return self.recurring.applies_on(day)


@dataclass(frozen=True)
class Booking:
    weekday: Weekday
    start_minute: int
    end_minute: int
    student_id: str
    teacher_id: str
    id: str = ''
    duration_minutes: int = 0
    location: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'weekday', Weekday.parse(self.weekday))
        object.__setattr__(self, 'start_minute', coerce_minutes(self.start_minute))
        object.__setattr__(self, 'end_minute', coerce_minutes(self.end_minute, allow_end_of_day=True))
        length = require_positive_interval(self.start_minute, self.end_minute)
        if self.duration_minutes and self.duration_minutes != length:
            raise ValidationError('duration_minutes does not match start/end')
        object.__setattr__(self, 'duration_minutes', length)
        if not str(self.student_id or '').strip():
            raise ValidationError('student_id is required')
        object.__setattr__(self, 'student_id', str(self.student_id))
        object.__setattr__(self, 'teacher_id', str(self.teacher_id))

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minute)


@dataclass(frozen=True)
class StudentRecord:
    id: str
    name: str
    instrument: str | None = None
    stage: int | None = None


@dataclass(frozen=True)
class Slot:
    weekday: Weekday
    start_minute: int
    end_minute: int
    block_id: str = ''
    location: str | None = None

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minute)

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute
