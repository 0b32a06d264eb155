"""
Availability breaker for the local generation backend.

Two states with a fixed cool-down: one transport failure opens it, one
success closes it, and once the cool-down has elapsed the next call is let
through as a trial request.
"""

import threading
import time

from ..util.logging import logger

AVAILABLE = "AVAILABLE"
UNAVAILABLE = "UNAVAILABLE"


class AvailabilityBreaker:

    def __init__(self, name: str = "local", cooldown_sec: float = 30.0, clock=time.monotonic):
        self.name = name
        self.cooldown_sec = cooldown_sec
        self._clock = clock
        self._state = AVAILABLE
        self._last_failure_at = None
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        return self._state

    def allow_request(self) -> bool:
        """True when a network call should be attempted (available, or cool-down elapsed)."""
        with self._lock:
            if self._state == AVAILABLE:
                return True
            return self._clock() - self._last_failure_at > self.cooldown_sec

    def record_success(self) -> None:
        with self._lock:
            previous = self._state
            self._state = AVAILABLE
            self._last_failure_at = None

        if previous != AVAILABLE:
            logger.log_breaker_transition(self.name, previous, AVAILABLE, "trial request succeeded")

    def record_failure(self, reason: str = "") -> None:
        """Open the breaker, or restart the cool-down when it is already open."""
        with self._lock:
            previous = self._state
            self._state = UNAVAILABLE
            self._last_failure_at = self._clock()

        if previous != UNAVAILABLE:
            logger.log_breaker_transition(self.name, previous, UNAVAILABLE, reason)
        else:
            logger.warning(f"Backend {self.name} still unavailable, cool-down restarted: {reason}")

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "state": self._state,
                "cooldown_sec": self.cooldown_sec,
                "seconds_since_failure": (
                    round(self._clock() - self._last_failure_at, 1)
                    if self._last_failure_at is not None else None
                )
            }
