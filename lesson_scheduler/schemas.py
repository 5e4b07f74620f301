from datetime import date

from pydantic import BaseModel, Field

from lesson_scheduler.config import settings


HHMM_PATTERN = r'^\d{2}:\d{2}$'


class RecurrencePayload(BaseModel):
    is_recurring: bool = True
    exclude_dates: list[date] = Field(default_factory=list)


class AvailabilityBlockCreateRequest(BaseModel):
    weekday: int | str
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    location: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=500)
    is_active: bool = True
    recurring: RecurrencePayload = Field(default_factory=RecurrencePayload)


class AvailabilityBlockUpdateRequest(BaseModel):
    weekday: int | str | None = None
    start_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    location: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    recurring: RecurrencePayload | None = None


class BookingCreateRequest(BaseModel):
    student_id: str = Field(min_length=1)
    weekday: int | str
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    duration_minutes: int | None = Field(default=None, ge=1, le=settings.max_lesson_minutes)
    location: str | None = Field(default=None, max_length=120)


class BookingMoveRequest(BaseModel):
    weekday: int | str
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    duration_minutes: int | None = Field(default=None, ge=1, le=settings.max_lesson_minutes)


class AssignmentCheckRequest(BaseModel):
    weekday: int | str
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    duration_minutes: int | None = Field(default=None, ge=1, le=settings.max_lesson_minutes)
    exclude_booking_id: str | None = None
