"""
Login Throttling Service

WHY: Prevent brute-force password attacks by limiting failed login attempts
per account. After MAX_FAILED_ATTEMPTS failures inside FAILURE_WINDOW the
email is locked for LOCKOUT_DURATION, even for correct credentials.

STATE PER NORMALIZED EMAIL:
    none -> counting (window open) -> locked -> none

- A failure after the window has expired starts a new window with count 1.
- The lock starts at the timestamp of the failure that reached the limit.
- An expired lock clears the record entirely.
- A successful login resets the record.

Two stores share the same rules:
- MemoryThrottleStore: process-local dict (default). Not shared across
  workers; a restart clears it.
- DatabaseThrottleStore: login_throttles table, shared by every instance
  pointed at the same database.
Selected by LOGIN_THROTTLE_BACKEND ("memory" / "database").
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import LoginThrottle
from erp.time_utils import utcnow, to_utc_naive


logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 5
FAILURE_WINDOW = timedelta(minutes=15)
LOCKOUT_DURATION = timedelta(minutes=10)


@dataclass
class ThrottleRecord:
    failure_count: int
    window_started_at: datetime
    locked_until: datetime | None = None


def _normalize(email: str | None) -> str:
    return (email or "").strip().lower()


def apply_failure(record: ThrottleRecord | None, now: datetime) -> ThrottleRecord:
    """Pure transition for one failed attempt."""
    if record is None or now - record.window_started_at > FAILURE_WINDOW:
        record = ThrottleRecord(failure_count=0, window_started_at=now)
    record.failure_count += 1
    if record.failure_count >= MAX_FAILED_ATTEMPTS and record.locked_until is None:
        record.locked_until = now + LOCKOUT_DURATION
    return record


def _is_expired(record: ThrottleRecord, now: datetime) -> bool:
    if record.locked_until is not None:
        return now >= record.locked_until
    return now - record.window_started_at > FAILURE_WINDOW


class MemoryThrottleStore:
    """Process-local store. Safe across request threads of one process."""

    def __init__(self):
        self._records: dict[str, ThrottleRecord] = {}
        self._lock = threading.Lock()

    def get(self, email: str) -> ThrottleRecord | None:
        with self._lock:
            return self._records.get(email)

    def save(self, email: str, record: ThrottleRecord) -> None:
        with self._lock:
            self._records[email] = record

    def delete(self, email: str) -> None:
        with self._lock:
            self._records.pop(email, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class DatabaseThrottleStore:
    """
    Shared store over the login_throttles table. Commits on every write.

    Timestamps are read back as naive UTC; PostgreSQL returns timezone=True
    columns as aware datetimes.
    """

    def get(self, email: str) -> ThrottleRecord | None:
        row = db.session.query(LoginThrottle).filter_by(email=email).first()
        if row is None:
            return None
        return ThrottleRecord(
            failure_count=row.failure_count,
            window_started_at=to_utc_naive(row.window_started_at),
            locked_until=to_utc_naive(row.locked_until),
        )

    def save(self, email: str, record: ThrottleRecord) -> None:
        row = db.session.query(LoginThrottle).filter_by(email=email).first()
        if row is None:
            row = LoginThrottle(email=email)
            db.session.add(row)
        row.failure_count = record.failure_count
        row.window_started_at = record.window_started_at
        row.locked_until = record.locked_until
        db.session.commit()

    def delete(self, email: str) -> None:
        db.session.query(LoginThrottle).filter_by(email=email).delete()
        db.session.commit()

    def clear(self) -> None:
        db.session.query(LoginThrottle).delete()
        db.session.commit()


_memory_store = MemoryThrottleStore()


def get_store():
    backend = current_app.config.get("LOGIN_THROTTLE_BACKEND", "memory")
    if backend == "database":
        return DatabaseThrottleStore()
    if backend != "memory":
        raise ValueError(f"Unknown LOGIN_THROTTLE_BACKEND: {backend}")
    return _memory_store


def _current(email: str, now: datetime, store) -> ThrottleRecord | None:
    record = store.get(email)
    if record is not None and _is_expired(record, now):
        store.delete(email)
        return None
    return record


def record_failure(email: str, now: datetime | None = None) -> int:
    """
    Record a failed login attempt.

    Returns the number of failures in the current window, including this one.
    """
    now = now or utcnow()
    key = _normalize(email)
    store = get_store()

    record = apply_failure(_current(key, now, store), now)
    store.save(key, record)

    if record.failure_count == MAX_FAILED_ATTEMPTS:
        logger.warning("Login locked for %s until %s", key, record.locked_until)
    return record.failure_count


def is_locked(email: str, now: datetime | None = None) -> bool:
    now = now or utcnow()
    record = _current(_normalize(email), now, get_store())
    return bool(record and record.locked_until and now < record.locked_until)


def lockout_remaining(email: str, now: datetime | None = None) -> int | None:
    """Seconds until the lock lifts (rounded up), or None when not locked."""
    now = now or utcnow()
    record = _current(_normalize(email), now, get_store())
    if not record or not record.locked_until or now >= record.locked_until:
        return None
    remaining = (record.locked_until - now).total_seconds()
    return max(1, math.ceil(remaining))


def reset_failures(email: str) -> None:
    get_store().delete(_normalize(email))


def get_lockout_status(email: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    record = _current(_normalize(email), now, get_store())
    remaining = lockout_remaining(email, now)
    return {
        "locked": remaining is not None,
        "failed_attempts": record.failure_count if record else 0,
        "max_attempts": MAX_FAILED_ATTEMPTS,
        "seconds_until_unlock": remaining,
        "failure_window_minutes": int(FAILURE_WINDOW.total_seconds() / 60),
        "lockout_duration_minutes": int(LOCKOUT_DURATION.total_seconds() / 60),
    }
