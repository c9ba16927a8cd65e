import pytest

from oracle_bot.core.guard import ErrorGuard, GuardTrippedError


def test_guard_trips_at_limit():
    guard = ErrorGuard(3)
    assert guard.on_failure("a") is False
    assert guard.on_failure("b") is False
    assert guard.on_failure("c") is True
    assert guard.is_tripped()
    assert guard.trip_reason == "c"
    with pytest.raises(GuardTrippedError):
        guard.check()


def test_success_resets_count():
    guard = ErrorGuard(3)
    guard.on_failure()
    guard.on_failure()
    guard.on_success()
    assert guard.count == 0
    guard.on_failure()
    guard.on_failure()
    assert not guard.is_tripped()


def test_tripped_guard_stays_tripped():
    guard = ErrorGuard(1)
    assert guard.on_failure("boom") is True
    guard.on_success()
    assert guard.is_tripped()
    # Further failures do not re-trip or overwrite the reason.
    assert guard.on_failure("later") is False
    assert guard.trip_reason == "boom"


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        ErrorGuard(0)
