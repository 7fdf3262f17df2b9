"""
Submission Rate Limiter.

Per-session sliding window: more than `max_attempts` submissions within
`window_seconds` of each other triggers a lockout of `lockout_seconds`.
Attempts rejected during a lockout are not counted and do not extend it.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_LOCKOUT_SECONDS = 300.0


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0  # whole seconds until the lockout ends

    @property
    def message(self) -> str:
        if self.allowed:
            return ""
        return f"Too many attempts. Please wait {self.retry_after} seconds."


class SubmissionRateLimiter:
    """Tracks attempts for one client. Not shared across sessions."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        lockout_seconds: float = DEFAULT_LOCKOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lockout_seconds = lockout_seconds
        self._clock = clock

        self.attempts = 0
        self.last_attempt: float | None = None
        self.lockout_until: float | None = None

    @property
    def locked_out(self) -> bool:
        return self.lockout_until is not None and self._clock() < self.lockout_until

    def remaining_lockout(self) -> int:
        if not self.locked_out:
            return 0
        return math.ceil(self.lockout_until - self._clock())

    def attempt(self) -> RateLimitDecision:
        """Register a submission attempt and decide whether it may proceed."""
        now = self._clock()

        if self.lockout_until is not None:
            if now < self.lockout_until:
                return RateLimitDecision(allowed=False, retry_after=math.ceil(self.lockout_until - now))
            # Lockout elapsed - start over
            self.reset()

        if self.last_attempt is not None and now - self.last_attempt < self.window_seconds:
            self.attempts += 1
            self.last_attempt = now
            if self.attempts > self.max_attempts:
                self.lockout_until = now + self.lockout_seconds
                return RateLimitDecision(allowed=False, retry_after=math.ceil(self.lockout_seconds))
            return RateLimitDecision(allowed=True)

        self.attempts = 1
        self.last_attempt = now
        return RateLimitDecision(allowed=True)

    def reset(self) -> None:
        self.attempts = 0
        self.last_attempt = None
        self.lockout_until = None

    def to_dict(self) -> dict:
        return {
            "attempts": self.attempts,
            "locked_out": self.locked_out,
            "retry_after": self.remaining_lockout(),
        }
