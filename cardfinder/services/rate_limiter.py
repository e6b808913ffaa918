"""
Rate Limiter — Cooldown After Throttling.

Gates every outbound search request. After the search API answers
HTTP 429, all requests are rejected locally until the cooldown expires.

INVARIANTS:
- check_or_raise() is called BEFORE any request is issued
- Rejection is TERMINAL for that resolution — no retries, no queuing
- Expiry is checked lazily on the next call, never by a timer
- Any non-throttled response resets the cooldown
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock

from cardfinder.config import DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS
from cardfinder.models.failure import RateLimitedError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitState:
    """Cooldown window. `until` is in clock seconds."""

    blocked: bool = False
    until: float = 0.0


@dataclass
class RateLimiter:
    """
    Thread-safe cooldown gate shared by every call of one search client.

    The clock is injectable so tests can move time without sleeping.
    """

    cooldown_seconds: int = DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS
    clock: Callable[[], float] = time.monotonic

    _state: RateLimitState = field(default_factory=RateLimitState)
    _lock: Lock = field(default_factory=Lock)

    @property
    def state(self) -> RateLimitState:
        """Copy of the current cooldown window."""
        with self._lock:
            return RateLimitState(blocked=self._state.blocked, until=self._state.until)

    @property
    def seconds_remaining(self) -> int:
        """Whole seconds left in the cooldown, 0 when not blocked."""
        with self._lock:
            return self._remaining(self.clock())

    @property
    def is_blocked(self) -> bool:
        return self.seconds_remaining > 0

    def _remaining(self, now: float) -> int:
        if not self._state.blocked or now >= self._state.until:
            return 0
        return math.ceil(self._state.until - now)

    def check_or_raise(self) -> None:
        """
        Reject the call if a cooldown is active.

        MUST be called BEFORE any request is issued.

        Raises:
            RateLimitedError: If still inside the cooldown window
        """
        with self._lock:
            now = self.clock()
            if self._state.blocked and now < self._state.until:
                raise RateLimitedError(self._state.until - now)

    def record_throttled(self, retry_after_seconds: float | None = None) -> None:
        """
        Start a cooldown after an HTTP 429.

        Args:
            retry_after_seconds: Server hint. Logged but not used; the
                configured cooldown always applies.
        """
        with self._lock:
            self._state = RateLimitState(
                blocked=True,
                until=self.clock() + self.cooldown_seconds,
            )

        logger.warning(
            "RATE_LIMITED",
            extra={
                "cooldown_seconds": self.cooldown_seconds,
                "retry_after_hint": retry_after_seconds,
            },
        )

    def record_success(self) -> None:
        """Clear any cooldown after a non-throttled response."""
        with self._lock:
            was_blocked = self._state.blocked
            self._state = RateLimitState()

        if was_blocked:
            logger.info("RATE_LIMIT_RESET")
