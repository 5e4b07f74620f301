from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from lesson_scheduler.config import settings
from lesson_scheduler.core.errors import ConflictError, NotFoundError, SchedulingError
from lesson_scheduler.models import AvailabilityBlock, Booking, RecurrenceRule, Slot, Weekday
from lesson_scheduler.schemas import (
    AssignmentCheckRequest,
    AvailabilityBlockCreateRequest,
    AvailabilityBlockUpdateRequest,
    BookingCreateRequest,
    BookingMoveRequest,
)
from lesson_scheduler.services.interval_math import coerce_interval, to_minutes
from lesson_scheduler.services.schedule_registry import ScheduleRegistry, TeacherSchedule, get_registry
from lesson_scheduler.services.teacher_load_service import get_weekly_load
from lesson_scheduler.services.week_view_service import build_week, current_week_start, serialize_week


router = APIRouter(prefix='/api/teachers/{teacher_id}/schedule', tags=['Teacher Schedule'])


def _teacher_schedule(teacher_id: str, registry: ScheduleRegistry = Depends(get_registry)) -> TeacherSchedule:
    return registry.stores_for(teacher_id)


def _http_error(exc: SchedulingError) -> HTTPException:
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail={'reason': exc.reason.value, 'message': str(exc)})
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _interval(start_time: str, end_time: str | None, duration_minutes: int | None) -> tuple[int, int]:
    if end_time:
        return coerce_interval(start_time, end_time)
    start = to_minutes(start_time)
    return coerce_interval(start, start + int(duration_minutes or settings.default_lesson_minutes))


def _serialize_block(block: AvailabilityBlock) -> dict:
    return {
        'id': block.id,
        'weekday': int(block.weekday),
        'weekday_name': block.weekday.label,
        'start_time': block.start_time,
        'end_time': block.end_time,
        'total_minutes': block.total_minutes,
        'location': block.location,
        'notes': block.notes,
        'is_active': block.is_active,
        'recurring': {
            'is_recurring': block.recurring.is_recurring,
            'exclude_dates': [day.isoformat() for day in block.recurring.exclude_dates],
        },
    }


def _serialize_booking(booking: Booking) -> dict:
    return {
        'id': booking.id,
        'teacher_id': booking.teacher_id,
        'student_id': booking.student_id,
        'weekday': int(booking.weekday),
        'weekday_name': booking.weekday.label,
        'start_time': booking.start_time,
        'end_time': booking.end_time,
        'duration_minutes': booking.duration_minutes,
        'location': booking.location,
    }


def _serialize_slot(slot: Slot) -> dict:
    return {
        'weekday': int(slot.weekday),
        'start_time': slot.start_time,
        'end_time': slot.end_time,
        'duration_minutes': slot.duration_minutes,
        'block_id': slot.block_id,
        'location': slot.location,
    }


@router.get('/blocks')
def api_list_blocks(schedule: TeacherSchedule = Depends(_teacher_schedule)):
    return {'data': [_serialize_block(row) for row in schedule.availability.all_blocks()]}


@router.post('/blocks', status_code=201)
def api_create_block(payload: AvailabilityBlockCreateRequest, schedule: TeacherSchedule = Depends(_teacher_schedule)):
    try:
        start, end = coerce_interval(payload.start_time, payload.end_time)
        block = schedule.availability.add(
            AvailabilityBlock(
                weekday=Weekday.parse(payload.weekday),
                start_minute=start,
                end_minute=end,
                location=payload.location,
                notes=payload.notes,
                is_active=payload.is_active,
                recurring=RecurrenceRule(
                    is_recurring=payload.recurring.is_recurring,
                    exclude_dates=tuple(payload.recurring.exclude_dates),
                ),
            )
        )
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': _serialize_block(block)}


@router.patch('/blocks/{block_id}')
def api_update_block(
    block_id: str,
    payload: AvailabilityBlockUpdateRequest,
    schedule: TeacherSchedule = Depends(_teacher_schedule),
):
    patch = payload.model_dump(exclude_unset=True)
    # Only location and notes may be cleared with an explicit null.
    patch = {key: value for key, value in patch.items() if value is not None or key in ('location', 'notes')}
    if 'start_time' in patch:
        patch['start_minute'] = patch.pop('start_time')
    if 'end_time' in patch:
        patch['end_minute'] = patch.pop('end_time')
    if 'recurring' in patch:
        patch['recurring'] = RecurrenceRule(
            is_recurring=patch['recurring']['is_recurring'],
            exclude_dates=tuple(patch['recurring']['exclude_dates']),
        )
    try:
        block = schedule.availability.update(block_id, **patch)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': _serialize_block(block)}


@router.delete('/blocks/{block_id}')
def api_delete_block(block_id: str, schedule: TeacherSchedule = Depends(_teacher_schedule)):
    try:
        schedule.availability.remove(block_id)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': {'ok': True, 'id': block_id}}


@router.get('/bookings')
def api_list_bookings(
    weekday: str | None = Query(default=None),
    schedule: TeacherSchedule = Depends(_teacher_schedule),
):
    try:
        rows = schedule.bookings.bookings_for_day(weekday) if weekday is not None else schedule.bookings.all_bookings()
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': [_serialize_booking(row) for row in rows]}


@router.post('/bookings', status_code=201)
def api_create_booking(payload: BookingCreateRequest, schedule: TeacherSchedule = Depends(_teacher_schedule)):
    try:
        start, end = _interval(payload.start_time, payload.end_time, payload.duration_minutes)
        booking = schedule.bookings.assign(
            payload.student_id,
            payload.weekday,
            start,
            end,
            location=payload.location,
        )
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': _serialize_booking(booking)}


@router.patch('/bookings/{booking_id}')
def api_move_booking(
    booking_id: str,
    payload: BookingMoveRequest,
    schedule: TeacherSchedule = Depends(_teacher_schedule),
):
    try:
        duration = payload.duration_minutes
        if not payload.end_time and duration is None:
            duration = schedule.bookings.get(booking_id).duration_minutes
        start, end = _interval(payload.start_time, payload.end_time, duration)
        booking = schedule.bookings.move(booking_id, payload.weekday, start, end)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': _serialize_booking(booking)}


@router.delete('/bookings/{booking_id}')
def api_delete_booking(booking_id: str, schedule: TeacherSchedule = Depends(_teacher_schedule)):
    try:
        schedule.bookings.remove(booking_id)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': {'ok': True, 'id': booking_id}}


@router.post('/validate')
def api_validate_assignment(payload: AssignmentCheckRequest, schedule: TeacherSchedule = Depends(_teacher_schedule)):
    try:
        start, end = _interval(payload.start_time, payload.end_time, payload.duration_minutes)
        result = schedule.checker.validate_assignment(payload.weekday, start, end, payload.exclude_booking_id)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': result.as_dict()}


@router.get('/slots')
def api_generate_slots(
    weekday: str = Query(...),
    duration: int = Query(default=settings.default_lesson_minutes),
    schedule: TeacherSchedule = Depends(_teacher_schedule),
):
    try:
        slots = schedule.slots.generate_slots(weekday, duration)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': [_serialize_slot(row) for row in slots]}


@router.get('/suggestions')
def api_suggest_slots(
    duration: int = Query(default=settings.default_lesson_minutes),
    limit: int = Query(default=5, ge=1, le=100),
    schedule: TeacherSchedule = Depends(_teacher_schedule),
):
    try:
        slots = schedule.slots.suggest_slots(duration, limit=limit)
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': [_serialize_slot(row) for row in slots]}


@router.get('/week')
def api_week(
    week_start: date | None = Query(default=None),
    schedule: TeacherSchedule = Depends(_teacher_schedule),
):
    try:
        week = build_week(
            week_start or current_week_start(),
            schedule.availability.all_blocks(),
            schedule.bookings.all_bookings(),
        )
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    return {'data': serialize_week(week)}


@router.get('/load')
def api_weekly_load(schedule: TeacherSchedule = Depends(_teacher_schedule)):
    payload = get_weekly_load(schedule.availability.all_blocks(), schedule.bookings.all_bookings())
    return {'data': {'teacher_id': schedule.teacher_id, **payload}}
