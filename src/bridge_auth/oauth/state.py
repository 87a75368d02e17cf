"""Pending OAuth states.

A state value is handed out when a user runs ``github login`` and comes back
on the authorization callback. It is the only thing tying the callback to the
user, so values are random and each can be consumed once.
"""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass, field

from ..errors import StateNotFoundError

DEFAULT_STATE_TTL_SECONDS = 600


@dataclass(frozen=True)
class OAuthState:
    """A state value waiting for its callback."""

    value: str
    user_id: str
    created_at: float = field(default_factory=lambda: time.time())

    def is_stale(self, ttl_seconds: int, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return now - self.created_at > ttl_seconds


class OAuthStateRegistry:
    """In-process registry of pending OAuth states keyed by state value.

    Usage:
        registry = OAuthStateRegistry()
        state = registry.create("@alice:example.org")
        # ... callback arrives with ?state=...
        user_id = registry.consume(state)
    """

    def __init__(self, ttl_seconds: int = DEFAULT_STATE_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._pending: dict[str, OAuthState] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pending)

    def create(self, user_id: str) -> str:
        """Record a new state bound to ``user_id`` and return its value."""
        state = OAuthState(value=secrets.token_urlsafe(32), user_id=user_id)
        with self._lock:
            self._prune()
            self._pending[state.value] = state
        return state.value

    def consume(self, value: str) -> str:
        """Invalidate ``value`` and return the user it was issued to.

        Raises:
            StateNotFoundError: If the state is unknown, stale or already consumed
        """
        with self._lock:
            state = self._pending.pop(value, None)
        if state is None or state.is_stale(self.ttl_seconds):
            raise StateNotFoundError()
        return state.user_id

    def _prune(self) -> None:
        now = time.time()
        stale = [v for v, s in self._pending.items() if s.is_stale(self.ttl_seconds, now)]
        for value in stale:
            del self._pending[value]
