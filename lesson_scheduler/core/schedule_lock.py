from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator


logger = logging.getLogger(__name__)
_registry_lock = threading.Lock()
_locks: dict[tuple[str, int], threading.RLock] = {}


def _lock_for(teacher_id: str, weekday: int) -> threading.RLock:
    key = (str(teacher_id), int(weekday))
    with _registry_lock:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _locks[key] = lock
        return lock


@contextmanager
def teacher_day_lock(teacher_id: str, weekday: int) -> Iterator[None]:
    """Serialize validate-then-commit for one teacher and weekday.

    Re-entrant, so a commit that validates under the lock can call back into
    the checker without deadlocking.
    """
    lock = _lock_for(teacher_id, weekday)
    with lock:
        yield


def clear_schedule_locks() -> None:
    with _registry_lock:
        _locks.clear()
        logger.debug('schedule_locks_cleared')
