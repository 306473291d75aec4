import time
import logging
from dataclasses import dataclass

import db
from config_loader import get_limits


def now_ms():
    return int(time.time() * 1000)


def window_state(now, last_attempt, cooldown_ms):
    """Return (stale, ms_until_reset) for a window that opened at last_attempt."""
    elapsed = now - last_attempt
    if elapsed >= cooldown_ms:
        return True, 0
    return False, cooldown_ms - elapsed


@dataclass(frozen=True)
class QuotaStatus:
    max_attempts: int
    attempts_used: int
    remaining_attempts: int
    ms_until_reset: int
    reset_at: int

    def as_json(self):
        return {
            "maxAttempts": self.max_attempts,
            "attemptsUsed": self.attempts_used,
            "remainingAttempts": self.remaining_attempts,
            "msUntilReset": self.ms_until_reset,
            "resetAt": self.reset_at,
        }


class QuotaTracker:
    """
    Per-user attempt counter over a rolling cooldown window.

    Stale windows are zeroed lazily, the next time can_generate or
    get_status looks at the user. record_attempt increments whatever is
    stored, so call can_generate first (or use try_consume, which does
    both in one statement).
    """

    def __init__(self, max_attempts=20, cooldown_ms=24 * 60 * 60 * 1000, clock=now_ms):
        self.max_attempts = max_attempts
        self.cooldown_ms = cooldown_ms
        self.clock = clock

    def _fresh(self, now):
        return QuotaStatus(self.max_attempts, 0, self.max_attempts, 0, now)

    def can_generate(self, user_id) -> bool:
        row = db.get_attempt(user_id)
        if row is None:
            return True
        now = self.clock()
        stale, _ = window_state(now, row["lastAttempt"], self.cooldown_ms)
        if stale:
            logging.info("Cooldown elapsed for %s, resetting attempts", user_id)
            db.reset_attempts(user_id, now, self.cooldown_ms)
            return True
        return (row["attempts"] or 0) < self.max_attempts

    def get_status(self, user_id) -> QuotaStatus:
        now = self.clock()
        row = db.get_attempt(user_id)
        if row is None:
            return self._fresh(now)
        stale, ms_until_reset = window_state(now, row["lastAttempt"], self.cooldown_ms)
        if stale:
            db.reset_attempts(user_id, now, self.cooldown_ms)
            return self._fresh(now)
        used = row["attempts"] or 0
        return QuotaStatus(
            max_attempts=self.max_attempts,
            attempts_used=used,
            remaining_attempts=max(0, self.max_attempts - used),
            ms_until_reset=ms_until_reset,
            reset_at=now + ms_until_reset,
        )

    def record_attempt(self, user_id) -> QuotaStatus:
        db.inc_attempt(user_id, self.clock())
        return self.get_status(user_id)

    def try_consume(self, user_id):
        """Check and record in one atomic write. Returns (allowed, status)."""
        allowed = db.consume_attempt(user_id, self.clock(), self.max_attempts, self.cooldown_ms)
        return allowed, self.get_status(user_id)


def tracker_from_config(cfg=None, clock=now_ms):
    max_attempts, cooldown_ms, _strict = get_limits(cfg)
    return QuotaTracker(max_attempts, cooldown_ms, clock=clock)
