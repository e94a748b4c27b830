# webapp/rate_limit.py
"""
Fixed-window request counters keyed by client IP.

Single-process only: counters live in this process's memory.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Dict, Optional

from flask import current_app, request

from webapp.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 10 * 60


@dataclass
class WindowCounter:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ):
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._sweep_interval = float(sweep_interval_seconds)
        self._counters: Dict[str, WindowCounter] = {}
        self._lock = threading.Lock()
        self._next_sweep_at = clock() + self._sweep_interval

    def hit(self, key: str) -> None:
        """
        Count one request for `key`; raises RateLimitExceeded once the
        current window already holds max_requests.
        """
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep_at:
                self._prune_locked(now)
                self._next_sweep_at = now + self._sweep_interval

            counter = self._counters.get(key)
            if counter is None or now > counter.reset_at:
                self._counters[key] = WindowCounter(count=1, reset_at=now + self.window_seconds)
                return

            if counter.count >= self.max_requests:
                retry_after = max(1, math.ceil(counter.reset_at - now))
                raise RateLimitExceeded(retry_after=retry_after)

            counter.count += 1

    def prune(self) -> int:
        with self._lock:
            return self._prune_locked(self._clock())

    def _prune_locked(self, now: float) -> int:
        expired = [k for k, c in self._counters.items() if now > c.reset_at]
        for k in expired:
            del self._counters[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._counters)


def client_key() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.remote_addr or "unknown"


def get_limiter(name: str) -> Optional[FixedWindowRateLimiter]:
    return current_app.extensions["rate_limiters"].get(name)


def rate_limited(name: str):
    """View decorator: count the request against the app's `name` limiter."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            limiter = get_limiter(name)
            if limiter is not None:
                key = client_key()
                try:
                    limiter.hit(key)
                except RateLimitExceeded:
                    logger.warning("Rate limited", extra={"limiter": name, "client": key})
                    raise
            return view(*args, **kwargs)

        return wrapper

    return decorator
