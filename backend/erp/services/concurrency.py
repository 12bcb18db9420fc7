# Overview: Retry and row-locking helpers for multi-row stock and payment writes.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical read-modify-write sequences.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but PostgreSQL/MySQL honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a unit of work, retrying on lock contention.

    Each attempt is rolled back before retrying, so func must be safe to
    call again from scratch. Domain errors propagate immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def atomic(func, *, attempts: int = 3):
    """
    Run func and commit its changes as one transaction.

    Any exception rolls the whole unit back and re-raises.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(_op, attempts=attempts)
