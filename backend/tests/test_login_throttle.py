"""
Login throttling.

5 failures inside 15 minutes lock the email for 10 minutes, even for the
correct password. Both throttle stores follow the same rules.
"""

from datetime import datetime, timedelta, timezone

import pytest

from erp.models import LoginThrottle
from erp.services import login_throttle_service as throttle
from erp.services.login_throttle_service import (
    ThrottleRecord,
    apply_failure,
    MAX_FAILED_ATTEMPTS,
    FAILURE_WINDOW,
    LOCKOUT_DURATION,
)


T0 = datetime(2026, 3, 1, 9, 0, 0)


class TestApplyFailure:

    def test_first_failure_opens_window(self):
        record = apply_failure(None, T0)
        assert record.failure_count == 1
        assert record.window_started_at == T0
        assert record.locked_until is None

    def test_fifth_failure_locks_from_its_timestamp(self):
        record = None
        for minute in range(MAX_FAILED_ATTEMPTS):
            record = apply_failure(record, T0 + timedelta(minutes=minute))
        assert record.locked_until == T0 + timedelta(minutes=4) + LOCKOUT_DURATION

    def test_failure_after_window_restarts_count(self):
        record = ThrottleRecord(failure_count=4, window_started_at=T0)
        record = apply_failure(record, T0 + FAILURE_WINDOW + timedelta(seconds=1))
        assert record.failure_count == 1
        assert record.locked_until is None


@pytest.fixture(params=["memory", "database"])
def store_backend(request, app, db_session):
    original = app.config["LOGIN_THROTTLE_BACKEND"]
    app.config["LOGIN_THROTTLE_BACKEND"] = request.param
    yield request.param
    app.config["LOGIN_THROTTLE_BACKEND"] = original


class TestThrottleStores:

    def test_locks_after_five_failures(self, store_backend):
        for i in range(4):
            throttle.record_failure("who@test.local", now=T0 + timedelta(seconds=i))
            assert not throttle.is_locked("who@test.local", now=T0 + timedelta(seconds=i))

        assert throttle.record_failure("who@test.local", now=T0 + timedelta(seconds=4)) == 5
        assert throttle.is_locked("who@test.local", now=T0 + timedelta(seconds=5))

    def test_email_is_normalized(self, store_backend):
        for _ in range(MAX_FAILED_ATTEMPTS):
            throttle.record_failure("  Who@Test.Local ", now=T0)
        assert throttle.is_locked("who@test.local", now=T0)

    def test_unlocks_after_lockout_duration(self, store_backend):
        for _ in range(MAX_FAILED_ATTEMPTS):
            throttle.record_failure("who@test.local", now=T0)

        just_before = T0 + LOCKOUT_DURATION - timedelta(seconds=1)
        assert throttle.is_locked("who@test.local", now=just_before)
        assert throttle.lockout_remaining("who@test.local", now=just_before) == 1

        after = T0 + LOCKOUT_DURATION
        assert not throttle.is_locked("who@test.local", now=after)
        # An expired lock clears the record: the next failure starts over
        assert throttle.record_failure("who@test.local", now=after) == 1

    def test_window_expiry_resets_count(self, store_backend):
        for _ in range(4):
            throttle.record_failure("who@test.local", now=T0)
        later = T0 + FAILURE_WINDOW + timedelta(minutes=1)
        assert throttle.record_failure("who@test.local", now=later) == 1
        assert not throttle.is_locked("who@test.local", now=later)

    def test_reset_clears_failures(self, store_backend):
        for _ in range(3):
            throttle.record_failure("who@test.local", now=T0)
        throttle.reset_failures("who@test.local")
        assert throttle.get_lockout_status("who@test.local", now=T0)["failed_attempts"] == 0

    def test_lockout_status(self, store_backend):
        for _ in range(MAX_FAILED_ATTEMPTS):
            throttle.record_failure("who@test.local", now=T0)
        status = throttle.get_lockout_status("who@test.local", now=T0 + timedelta(minutes=4))
        assert status["locked"] is True
        assert status["failed_attempts"] == 5
        assert status["seconds_until_unlock"] == 6 * 60
        assert status["lockout_duration_minutes"] == 10
        assert status["failure_window_minutes"] == 15


def test_unknown_backend_is_rejected(app):
    original = app.config["LOGIN_THROTTLE_BACKEND"]
    app.config["LOGIN_THROTTLE_BACKEND"] = "redis"
    try:
        with pytest.raises(ValueError):
            throttle.get_store()
    finally:
        app.config["LOGIN_THROTTLE_BACKEND"] = original


def test_database_store_reads_aware_timestamps_as_naive_utc(app, db_session):
    # PostgreSQL hands timezone=True columns back with tzinfo set
    dhaka = timezone(timedelta(hours=6))
    db_session.add(LoginThrottle(
        email="who@test.local",
        failure_count=MAX_FAILED_ATTEMPTS,
        window_started_at=datetime(2026, 3, 1, 15, 0, 0, tzinfo=dhaka),
        locked_until=datetime(2026, 3, 1, 15, 10, 0, tzinfo=dhaka),
    ))
    db_session.flush()

    original = app.config["LOGIN_THROTTLE_BACKEND"]
    app.config["LOGIN_THROTTLE_BACKEND"] = "database"
    try:
        record = throttle.DatabaseThrottleStore().get("who@test.local")
        assert record.window_started_at == T0
        assert record.window_started_at.tzinfo is None
        assert record.locked_until == T0 + LOCKOUT_DURATION
        assert record.locked_until.tzinfo is None

        five_minutes_in = T0 + timedelta(minutes=5)
        assert throttle.is_locked("who@test.local", now=five_minutes_in)
        assert throttle.lockout_remaining("who@test.local", now=five_minutes_in) == 300
        assert not throttle.is_locked("who@test.local", now=T0 + LOCKOUT_DURATION)
    finally:
        app.config["LOGIN_THROTTLE_BACKEND"] = original
