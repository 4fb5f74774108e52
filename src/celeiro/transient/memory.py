"""In-process key/value store."""

import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from celeiro.domain.errors import UpstreamError
from celeiro.system import SystemClock
from celeiro.transient.base import KeyValueStore

SWEEP_INTERVAL_SECONDS = 60


@dataclass
class _Entry:
    value: str
    expires_at: Optional[datetime]


class MemoryStore(KeyValueStore):
    """Dictionary-backed store with expiry.

    Expired entries are dropped when read, and writes sweep the whole map
    at most once per sweep interval. Time comes from the injected clock so
    tests can expire codes and sessions deterministically.
    """

    def __init__(self, clock=None, sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS):
        self.clock = clock or SystemClock()
        self.sweep_interval = timedelta(seconds=sweep_interval_seconds)
        self._next_sweep = self.clock.now() + self.sweep_interval
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise UpstreamError("key/value store is closed")

    def _live_entry(self, key: str) -> Optional[_Entry]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self.clock.now() >= entry.expires_at:
            del self._data[key]
            return None
        return entry

    def cleanup_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock:
            return self._sweep()

    def _sweep(self) -> int:
        now = self.clock.now()
        expired = [
            key
            for key, entry in self._data.items()
            if entry.expires_at is not None and now >= entry.expires_at
        ]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self.sweep_interval
        return len(expired)

    def _maybe_sweep(self) -> None:
        if self.clock.now() >= self._next_sweep:
            self._sweep()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            self._check_open()
            entry = self._live_entry(key)
            return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._check_open()
            self._maybe_sweep()
            self._data[key] = _Entry(value=value, expires_at=None)

    def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._check_open()
            self._maybe_sweep()
            expires_at = self.clock.now() + timedelta(seconds=ttl_seconds)
            self._data[key] = _Entry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._check_open()
            self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            self._check_open()
            return self._live_entry(key) is not None

    def ttl(self, key: str) -> Optional[int]:
        with self._lock:
            self._check_open()
            entry = self._live_entry(key)
            if entry is None or entry.expires_at is None:
                return None
            remaining = (entry.expires_at - self.clock.now()).total_seconds()
            return max(1, math.ceil(remaining))

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._data.clear()
