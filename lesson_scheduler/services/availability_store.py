from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import date
from typing import Any, Iterable

from lesson_scheduler.core.errors import NotFoundError, ValidationError
from lesson_scheduler.models import AvailabilityBlock, RecurrenceRule, Weekday


logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = {'weekday', 'start_minute', 'end_minute', 'location', 'recurring', 'notes', 'is_active'}


class AvailabilityStore:
    """Recurring weekly teaching windows for a single teacher.

    Blocks on the same weekday may overlap; they are kept as entered and
    never merged.
    """

    def __init__(self, teacher_id: str, blocks: Iterable[AvailabilityBlock] = ()) -> None:
        self.teacher_id = str(teacher_id)
        self._lock = threading.RLock()
        self._blocks: dict[str, AvailabilityBlock] = {}
        for block in blocks:
            self.add(block)

    def add(self, block: AvailabilityBlock) -> AvailabilityBlock:
        if not isinstance(block, AvailabilityBlock):
            raise ValidationError('AvailabilityBlock expected')
        row = block if block.id else replace(block, id=uuid.uuid4().hex)
        with self._lock:
            if row.id in self._blocks:
                raise ValidationError(f'Availability block {row.id} already exists')
            self._blocks[row.id] = row
        logger.info(
            'availability_block_added teacher_id=%s block_id=%s weekday=%s start=%s end=%s',
            self.teacher_id,
            row.id,
            row.weekday.name,
            row.start_time,
            row.end_time,
        )
        return row

    def update(self, block_id: str, **patch: Any) -> AvailabilityBlock:
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f'Unknown availability fields: {", ".join(sorted(unknown))}')
        with self._lock:
            current = self._get_locked(block_id)
            # replace() re-runs the range checks before anything is stored.
            updated = replace(current, **patch)
            self._blocks[block_id] = updated
        logger.info('availability_block_updated teacher_id=%s block_id=%s fields=%s', self.teacher_id, block_id, ','.join(sorted(patch)))
        return updated

    def remove(self, block_id: str) -> AvailabilityBlock:
        with self._lock:
            row = self._get_locked(block_id)
            del self._blocks[block_id]
        logger.info('availability_block_removed teacher_id=%s block_id=%s', self.teacher_id, block_id)
        return row

    def exclude_date(self, block_id: str, day: date) -> AvailabilityBlock:
        with self._lock:
            current = self._get_locked(block_id)
            if Weekday.from_date(day) != current.weekday:
                raise ValidationError(f'{day.isoformat()} is not a {current.weekday.label}')
            recurring = RecurrenceRule(
                is_recurring=current.recurring.is_recurring,
                exclude_dates=(*current.recurring.exclude_dates, day),
            )
            return self.update(block_id, recurring=recurring)

    def get(self, block_id: str) -> AvailabilityBlock:
        with self._lock:
            return self._get_locked(block_id)

    def blocks_for_day(self, weekday: Weekday | int | str, *, include_inactive: bool = False) -> list[AvailabilityBlock]:
        day = Weekday.parse(weekday)
        with self._lock:
            rows = [
                row
                for row in self._blocks.values()
                if row.weekday == day and (include_inactive or row.is_active)
            ]
        # Stable sort keeps insertion order for blocks that start together.
        rows.sort(key=lambda row: row.start_minute)
        return rows

    def blocks_for_date(self, day: date) -> list[AvailabilityBlock]:
        return [row for row in self.blocks_for_day(Weekday.from_date(day)) if row.available_on(day)]

    def all_blocks(self) -> list[AvailabilityBlock]:
        with self._lock:
            rows = list(self._blocks.values())
        rows.sort(key=lambda row: (row.weekday, row.start_minute))
        return rows

    def _get_locked(self, block_id: str) -> AvailabilityBlock:
        row = self._blocks.get(block_id)
        if row is None:
            raise NotFoundError(f'Availability block {block_id} not found')
        return row
