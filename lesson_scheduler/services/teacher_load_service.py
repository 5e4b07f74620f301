from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from lesson_scheduler.models import AvailabilityBlock, Booking, Weekday
from lesson_scheduler.services.interval_math import covered_minutes, minutes_to_time


PEAK_HOURS_LIMIT = 3


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round((part / whole) * 100.0, 2)


def get_weekly_load(availability: Iterable[AvailabilityBlock], bookings: Iterable[Booking]) -> dict[str, Any]:
    blocks = [row for row in availability if row.is_active]
    rows = list(bookings)

    daily_rows = []
    total_available = 0
    total_booked = 0
    adjacent_pairs = 0
    back_to_back = 0
    for weekday in Weekday:
        day_blocks = [row for row in blocks if row.weekday == weekday]
        day_bookings = sorted((row for row in rows if row.weekday == weekday), key=lambda row: row.start_minute)
        available = covered_minutes([(row.start_minute, row.end_minute) for row in day_blocks])
        booked = sum(row.duration_minutes for row in day_bookings)
        total_available += available
        total_booked += booked
        for previous, current in zip(day_bookings, day_bookings[1:]):
            adjacent_pairs += 1
            if previous.end_minute == current.start_minute:
                back_to_back += 1
        daily_rows.append(
            {
                'weekday': int(weekday),
                'weekday_name': weekday.label,
                'available_minutes': available,
                'booked_minutes': booked,
                'lessons': len(day_bookings),
                'utilization_percentage': _percentage(booked, available),
            }
        )

    hour_counts = Counter(row.start_minute // 60 for row in rows)
    # Most lessons first; earlier hour wins a tie.
    peak_hours = [
        minutes_to_time(hour * 60)
        for hour, _ in sorted(hour_counts.items(), key=lambda item: (-item[1], item[0]))[:PEAK_HOURS_LIMIT]
    ]
    return {
        'total_blocks': len(blocks),
        'total_lessons': len(rows),
        'available_minutes': total_available,
        'booked_minutes': total_booked,
        'free_minutes': max(0, total_available - total_booked),
        'utilization_percentage': _percentage(total_booked, total_available),
        'back_to_back_percentage': _percentage(back_to_back, adjacent_pairs),
        'peak_hours': peak_hours,
        'daily': daily_rows,
    }
