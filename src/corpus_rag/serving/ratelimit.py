"""Fixed-window request rate limiting.

The counter resets at fixed window boundaries, so up to ``2 × limit``
requests can be admitted across a boundary.  That tolerance is accepted.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from corpus_rag.config import Settings, settings
from corpus_rag.errors import RateLimitError


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class RateWindow:
    """Requests admitted in the window that started at ``window_start`` (ms)."""

    count: int
    window_start: float


class RateLimiter:
    """Admit at most *limit* requests per *window_ms* milliseconds.

    One instance is shared by every request handler of a process; all
    counter updates happen under a single lock.

    Parameters
    ----------
    limit:
        Maximum admitted requests per window.
    window_ms:
        Window length in milliseconds.
    clock:
        Millisecond clock, injectable for tests.
    """

    def __init__(self, limit: int, window_ms: float, clock: Callable[[], float] = _monotonic_ms) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        self.limit = limit
        self.window_ms = window_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._window = RateWindow(count=0, window_start=clock())

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> RateLimiter:
        return cls(limit=cfg.rate_limit_max_requests, window_ms=cfg.rate_limit_window_ms)

    @property
    def window(self) -> RateWindow:
        """Snapshot of the current window."""
        with self._lock:
            return RateWindow(self._window.count, self._window.window_start)

    def acquire(self) -> None:
        """Admit one request or raise :class:`~corpus_rag.errors.RateLimitError`.

        A rejected request leaves the counters untouched.
        """
        with self._lock:
            now = self._clock()
            if now - self._window.window_start > self.window_ms:
                self._window = RateWindow(count=0, window_start=now)
            if self._window.count >= self.limit:
                remaining_ms = self._window.window_start + self.window_ms - now
                raise RateLimitError(retry_after=max(0.0, remaining_ms) / 1000.0)
            self._window.count += 1

    def try_acquire(self) -> bool:
        """Like :meth:`acquire` but returns ``False`` instead of raising."""
        try:
            self.acquire()
        except RateLimitError:
            return False
        return True
