"""
Conversation Session State Store
Per-session ephemeral state (history, counters, timestamps) keyed by session id.

Each session carries its own re-entrant lock; the store lock only guards the
map itself, so work on different sessions never blocks. Idle sessions are
evicted lazily after a TTL.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from . import config
from ..util.logging import logger

DEFAULT_COUNTERS = ("questions", "accepted", "refused", "handoffs")


@dataclass
class SessionState:
    """State of one conversation. Mutate only while holding `lock`."""
    session_id: str
    created_at: datetime
    last_activity: datetime
    history: List[str] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=lambda: {name: 0 for name in DEFAULT_COUNTERS})
    last_intent: Optional[str] = None
    # Turns currently running on this session; the RLock alone cannot tell
    # its own holder that the session is busy
    in_use: int = 0
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)


class ISessionStore(ABC):
    """Abstract interface for session state backends."""

    @abstractmethod
    def get_or_create(self, session_id: str) -> SessionState:
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionState]:
        pass

    @abstractmethod
    def append(self, session_id: str, line: str) -> None:
        pass

    @abstractmethod
    def touch(self, session_id: str) -> None:
        pass

    @abstractmethod
    def increment(self, session_id: str, counter: str, amount: int = 1) -> int:
        pass

    @abstractmethod
    def evict_expired(self) -> int:
        pass


class InMemorySessionStore(ISessionStore):
    """
    Process-local session store with idle-timeout eviction.

    Expired sessions are swept at most once per sweep interval, piggybacking
    on get_or_create. A session that is locked by another thread, or that
    has a turn in progress (`in_use`), is never evicted.
    """

    def __init__(self, ttl_seconds: int = None, sweep_interval: int = None,
                 now: Callable[[], datetime] = datetime.now):
        self.ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else config.SESSION_TTL_SEC)
        self.sweep_interval = timedelta(
            seconds=sweep_interval if sweep_interval is not None else config.SESSION_SWEEP_INTERVAL_SEC
        )
        self._now = now
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()
        self._last_sweep = now()
        self._stats = {"created": 0, "evicted": 0}

    def get_or_create(self, session_id: str) -> SessionState:
        """Return the session, creating it on first reference. Access counts as activity."""
        self._maybe_sweep()

        now = self._now()
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                state = SessionState(session_id=session_id, created_at=now, last_activity=now)
                self._sessions[session_id] = state
                self._stats["created"] += 1
                logger.debug(f"Session created: {session_id}")
            else:
                state.last_activity = now
            return state

    def get(self, session_id: str) -> Optional[SessionState]:
        with self._lock:
            return self._sessions.get(session_id)

    def append(self, session_id: str, line: str) -> None:
        state = self.get_or_create(session_id)
        with state.lock:
            state.history.append(line)

    def touch(self, session_id: str) -> None:
        state = self.get_or_create(session_id)
        with state.lock:
            state.last_activity = self._now()

    def increment(self, session_id: str, counter: str, amount: int = 1) -> int:
        """Increment a session counter and return its new value."""
        state = self.get_or_create(session_id)
        with state.lock:
            state.counters[counter] = state.counters.get(counter, 0) + amount
            return state.counters[counter]

    def evict_expired(self) -> int:
        """Drop sessions idle for longer than the TTL. Returns how many were evicted."""
        now = self._now()
        evicted = []

        with self._lock:
            self._last_sweep = now
            for session_id, state in list(self._sessions.items()):
                if now - state.last_activity <= self.ttl:
                    continue
                if not state.lock.acquire(blocking=False):
                    continue
                try:
                    if not state.in_use and now - state.last_activity > self.ttl:
                        del self._sessions[session_id]
                        evicted.append(session_id)
                finally:
                    state.lock.release()
            self._stats["evicted"] += len(evicted)

        if evicted:
            logger.log_operation("session.evict", "success", {"evicted": len(evicted), "remaining": len(self)})
        return len(evicted)

    def _maybe_sweep(self) -> None:
        if self._now() - self._last_sweep >= self.sweep_interval:
            self.evict_expired()

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self._stats)
        stats["active"] = len(self)
        stats["ttl_seconds"] = int(self.ttl.total_seconds())
        return stats

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
