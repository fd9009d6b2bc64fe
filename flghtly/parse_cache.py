"""
Email parse result cache.

In-memory LRU keyed by the SHA-256 of the trimmed email body, so the same
confirmation email pasted twice does not cost a second Claude call.
Resets on process restart.
"""

import hashlib
import json
import threading
import time
from collections import OrderedDict


class ParseCache:
    """LRU cache with TTL, entry cap and a total size cap (JSON length)."""
    MAX_ENTRIES = 100
    TTL_SECONDS = 60 * 60
    MAX_BYTES = 5_000_000
    MIN_CONFIDENCE = 0.5

    def __init__(self, max_entries=MAX_ENTRIES, ttl=TTL_SECONDS, max_bytes=MAX_BYTES, clock=time.monotonic):
        self._lock = threading.Lock()
        self._entries = OrderedDict()  # key -> (stored_at, size, result)
        self._size = 0
        self.max_entries = max_entries
        self.ttl = ttl
        self.max_bytes = max_bytes
        self._clock = clock

    @staticmethod
    def make_key(email_content):
        return hashlib.sha256(email_content.strip().encode('utf-8')).hexdigest()

    def _drop(self, key):
        _, size, _ = self._entries.pop(key)
        self._size -= size

    def get(self, email_content):
        key = self.make_key(email_content)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry[0] > self.ttl:
                self._drop(key)
                entry = None
            if entry is None:
                print(f"[ParseCache] miss {key[:16]}... (len={len(email_content)}, size={len(self._entries)})")
                return None
            # Reading refreshes both recency and age
            self._entries[key] = (self._clock(), entry[1], entry[2])
            self._entries.move_to_end(key)
            print(f"[ParseCache] hit {key[:16]}... (size={len(self._entries)})")
            return entry[2]

    def set(self, email_content, result):
        """Store a parse result. Failed or low-confidence results are skipped."""
        if not result.get("success") or result.get("confidence", 0) < self.MIN_CONFIDENCE:
            print(f"[ParseCache] skip: success={result.get('success')} confidence={result.get('confidence')}")
            return False

        key = self.make_key(email_content)
        size = len(json.dumps(result, default=str))
        if size > self.max_bytes:
            return False

        with self._lock:
            if key in self._entries:
                self._drop(key)
            self._entries[key] = (self._clock(), size, result)
            self._size += size
            while len(self._entries) > self.max_entries or self._size > self.max_bytes:
                oldest = next(iter(self._entries))
                self._drop(oldest)
            print(f"[ParseCache] stored {key[:16]}... (size={len(self._entries)}, bytes={self._size})")
        return True

    def clear(self):
        with self._lock:
            previous = len(self._entries)
            self._entries.clear()
            self._size = 0
        print(f"[ParseCache] cleared {previous} entries")

    def stats(self):
        with self._lock:
            return {
                "size": len(self._entries),
                "calculated_size": self._size,
                "max_size": self.max_entries,
                "max_bytes": self.max_bytes,
            }


_cache = ParseCache()


def get_parse_cache():
    return _cache
