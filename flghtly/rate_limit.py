"""
Fixed-window in-memory rate limiter.

Counts reset on process restart; each client gets `max_requests` per
window, after which callers get a retry_after in seconds.
"""

import math
import threading
import time


# Expired windows are swept from check() at most this often, or at once
# when the table grows past MAX_TRACKED_CLIENTS.
CLEANUP_INTERVAL_SECONDS = 5 * 60
MAX_TRACKED_CLIENTS = 10000


class RateLimiter:
    def __init__(self, max_requests, window_seconds, clock=time.time,
                 cleanup_interval=CLEANUP_INTERVAL_SECONDS, max_entries=MAX_TRACKED_CLIENTS):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries = {}  # identifier -> [count, reset_at]
        self._last_cleanup = clock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def _prune(self, now):
        """Drop expired windows. Caller holds the lock."""
        expired = [key for key, (_, reset_at) in self._entries.items() if now > reset_at]
        for key in expired:
            del self._entries[key]
        self._last_cleanup = now
        if expired:
            print(f"[RateLimit] Pruned {len(expired)} expired clients, {len(self._entries)} tracked")
        return len(expired)

    def check(self, identifier):
        """
        Count one request for `identifier`.

        Returns {"allowed", "remaining", "reset_time", "retry_after"}.
        """
        now = self._clock()
        with self._lock:
            if (now - self._last_cleanup >= self.cleanup_interval
                    or len(self._entries) >= self.max_entries):
                self._prune(now)

            entry = self._entries.get(identifier)
            if entry is None or now > entry[1]:
                entry = [0, now + self.window_seconds]
                self._entries[identifier] = entry

            if entry[0] >= self.max_requests:
                return {
                    "allowed": False,
                    "remaining": 0,
                    "reset_time": entry[1],
                    "retry_after": max(1, math.ceil(entry[1] - now)),
                }

            entry[0] += 1
            return {
                "allowed": True,
                "remaining": self.max_requests - entry[0],
                "reset_time": entry[1],
                "retry_after": None,
            }

    def cleanup(self):
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            return self._prune(self._clock())

    def reset(self):
        with self._lock:
            self._entries.clear()


def get_client_identifier(headers):
    """First x-forwarded-for entry, then x-real-ip, else 'unknown'."""
    forwarded = headers.get('x-forwarded-for')
    if forwarded:
        return forwarded.split(',')[0].strip()
    real_ip = headers.get('x-real-ip')
    if real_ip:
        return real_ip.strip()
    return 'unknown'


# 10 eligibility checks per client per hour
ELIGIBILITY_LIMIT = 10
ELIGIBILITY_WINDOW_SECONDS = 60 * 60

eligibility_limiter = RateLimiter(ELIGIBILITY_LIMIT, ELIGIBILITY_WINDOW_SECONDS)
