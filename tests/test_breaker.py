"""
Tests for the two-state availability breaker.
"""

from kbchat.agents.breaker import AVAILABLE, UNAVAILABLE, AvailabilityBreaker


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def test_starts_available():
    breaker = AvailabilityBreaker(clock=FakeClock())
    assert breaker.state == AVAILABLE
    assert breaker.allow_request() is True


def test_single_failure_opens():
    clock = FakeClock()
    breaker = AvailabilityBreaker(cooldown_sec=30, clock=clock)

    breaker.record_failure("connection refused")

    assert breaker.state == UNAVAILABLE
    assert breaker.allow_request() is False
    clock.advance(29.9)
    assert breaker.allow_request() is False


def test_trial_allowed_after_cooldown():
    clock = FakeClock()
    breaker = AvailabilityBreaker(cooldown_sec=30, clock=clock)
    breaker.record_failure()

    clock.advance(30.1)

    assert breaker.allow_request() is True
    assert breaker.state == UNAVAILABLE


def test_single_success_closes():
    clock = FakeClock()
    breaker = AvailabilityBreaker(cooldown_sec=30, clock=clock)
    breaker.record_failure()
    clock.advance(31)

    breaker.record_success()

    assert breaker.state == AVAILABLE
    assert breaker.allow_request() is True


def test_failed_trial_restarts_cooldown():
    clock = FakeClock()
    breaker = AvailabilityBreaker(cooldown_sec=30, clock=clock)
    breaker.record_failure()
    clock.advance(31)
    assert breaker.allow_request() is True

    breaker.record_failure("still down")

    assert breaker.allow_request() is False
    clock.advance(31)
    assert breaker.allow_request() is True


def test_snapshot():
    clock = FakeClock()
    breaker = AvailabilityBreaker(cooldown_sec=30, clock=clock)
    assert breaker.snapshot()["seconds_since_failure"] is None

    breaker.record_failure()
    clock.advance(5)

    snapshot = breaker.snapshot()
    assert snapshot["state"] == UNAVAILABLE
    assert snapshot["seconds_since_failure"] == 5.0
