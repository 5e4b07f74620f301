from __future__ import annotations

import re

from lesson_scheduler.core.errors import ValidationError


MINUTES_PER_DAY = 24 * 60
_HHMM_RE = re.compile(r'^(\d{2}):(\d{2})$')


def to_minutes(value: str, *, allow_end_of_day: bool = False) -> int:
    if not isinstance(value, str):
        raise ValidationError(f'Invalid HH:MM time: {value!r}')
    match = _HHMM_RE.match(value.strip())
    if not match:
        raise ValidationError(f'Invalid HH:MM time: {value!r}')
    hour = int(match.group(1))
    minute = int(match.group(2))
    if allow_end_of_day and hour == 24 and minute == 0:
        return MINUTES_PER_DAY
    if hour > 23 or minute > 59:
        raise ValidationError(f'Invalid HH:MM time: {value!r}')
    return hour * 60 + minute


def minutes_to_time(minutes: int) -> str:
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0 or minutes > MINUTES_PER_DAY:
        raise ValidationError(f'Minute value out of range: {minutes!r}')
    hour, minute = divmod(minutes, 60)
    return f'{hour:02d}:{minute:02d}'


def coerce_minutes(value: int | str, *, allow_end_of_day: bool = False) -> int:
    if isinstance(value, str):
        return to_minutes(value, allow_end_of_day=allow_end_of_day)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'Invalid time value: {value!r}')
    upper = MINUTES_PER_DAY if allow_end_of_day else MINUTES_PER_DAY - 1
    if value < 0 or value > upper:
        raise ValidationError(f'Minute value out of range: {value!r}')
    return value


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # Half-open intervals: [0, 30) and [30, 60) only touch.
    return a_start < b_end and b_start < a_end


def duration(start: int, end: int) -> int:
    return end - start


def require_positive_interval(start: int, end: int) -> int:
    length = duration(start, end)
    if length <= 0:
        raise ValidationError('end_time must be after start_time')
    return length


def coerce_interval(start: int | str, end: int | str) -> tuple[int, int]:
    start_minute = coerce_minutes(start)
    end_minute = coerce_minutes(end, allow_end_of_day=True)
    require_positive_interval(start_minute, end_minute)
    return start_minute, end_minute


def require_positive_duration(duration_minutes: int) -> int:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationError(f'duration_minutes must be an integer: {duration_minutes!r}')
    if duration_minutes <= 0:
        raise ValidationError('duration_minutes must be positive')
    return duration_minutes


def ceil_div(value: int, divisor: int) -> int:
    return -(-value // divisor)


def merge_intervals(intervals: list[tuple[int, int]]) -> list[tuple[int, int]]:
    rows = sorted((start, end) for start, end in intervals if end > start)
    if not rows:
        return []
    merged = [rows[0]]
    for start, end in rows[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
            continue
        merged.append((start, end))
    return merged


def covered_minutes(intervals: list[tuple[int, int]]) -> int:
    return sum(end - start for start, end in merge_intervals(intervals))
