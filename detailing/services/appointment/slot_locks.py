# detailing/services/appointment/slot_locks.py
"""
Process-local critical sections for booking writes.

Create and reschedule run check-then-write against the booking store. Inside one
process every writer for the same (service, date) goes through the same lock; the
row lock taken on the service inside the transaction covers other processes on
PostgreSQL, and the partial unique index catches anything left.
"""
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterable, Tuple

SlotKey = Tuple[int, date]

_registry_lock = threading.Lock()
_locks: Dict[SlotKey, threading.Lock] = {}


def _lock_for(key: SlotKey) -> threading.Lock:
    with _registry_lock:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _locks[key] = lock
        return lock


@contextmanager
def slot_lock(keys: Iterable[SlotKey]):
    """Hold the locks for all given (service_id, date) keys, acquired in sorted order"""
    ordered = sorted(set(keys))
    acquired = []
    try:
        for key in ordered:
            lock = _lock_for(key)
            lock.acquire()
            acquired.append(lock)
        yield
    finally:
        for lock in reversed(acquired):
            lock.release()
