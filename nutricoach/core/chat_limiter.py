"""
chat_limiter.py — Fixed-window request limiter for POST /api/v1/chat.

Every chat request costs an upstream LLM call, so each caller address gets
at most `max_requests` accepted requests per `window_ms`. The window starts
at the caller's first request and restarts on the first request that
arrives after it has expired.

This is a fixed window, not a sliding one: a caller can spend a full quota
just before its window ends and another full quota right after, i.e. up to
2 × max_requests in a short span straddling the boundary. That imprecision
is accepted for an advisory, per-process limiter.

State is in-memory and per process; a restart starts everyone from zero.
The app owns one FixedWindowRateLimiter (app.state.chat_limiter) plus a
RateLimitSweeper that evicts expired entries in the background.
"""

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

# Bucket shared by every caller whose address cannot be determined.
UNKNOWN_CALLER = "unknown"

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class RateLimitEntry:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_ms: int = 0

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.retry_after_ms / 1000)


class ChatRateLimitExceeded(Exception):
    """Raised by the chat route when the caller's window is exhausted."""

    def __init__(self, retry_after_ms: int) -> None:
        self.retry_after_ms = retry_after_ms
        self.retry_after_seconds = math.ceil(retry_after_ms / 1000)
        super().__init__(
            f"Rate limit exceeded. Please try again in {self.retry_after_seconds} seconds."
        )


class FixedWindowRateLimiter:
    """
    Per-key fixed-window counter.

    check_and_consume() and sweep_expired() hold the same lock, so the
    read-check-increment on an entry is atomic even when FastAPI runs
    dependencies on its worker threads.
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        clock: Optional[Clock] = None,
    ) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._clock = clock or monotonic_ms
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now - entry.window_start > self.window_ms

    def check_and_consume(self, key: str, now: Optional[float] = None) -> RateLimitDecision:
        """
        Count one request for *key* if its window has room.

        Rejected requests are not counted and leave the entry untouched.
        Never raises; an empty key is just another bucket.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            entry = self._entries.get(key)

            if entry is None or self._expired(entry, now):
                self._entries[key] = RateLimitEntry(count=1, window_start=now)
                return RateLimitDecision(allowed=True)

            if entry.count < self.max_requests:
                entry.count += 1
                return RateLimitDecision(allowed=True)

            elapsed = now - entry.window_start
            retry_after = math.ceil(self.window_ms - elapsed)
            # At exactly elapsed == window the window is still open (expiry is strict)
            return RateLimitDecision(allowed=False, retry_after_ms=max(retry_after, 1))

    def sweep_expired(self, now: Optional[float] = None) -> int:
        """Drop every entry whose window has expired as of *now*; return how many."""
        if now is None:
            now = self._clock()

        with self._lock:
            stale = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in stale:
                del self._entries[key]

        if stale:
            logger.debug("Rate limiter sweep removed %d expired entries", len(stale))
        return len(stale)

    def get_entry(self, key: str) -> Optional[RateLimitEntry]:
        """Snapshot of the entry for *key* (None if untracked)."""
        with self._lock:
            entry = self._entries.get(key)
            return None if entry is None else RateLimitEntry(entry.count, entry.window_start)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RateLimitSweeper:
    """Background task that calls limiter.sweep_expired() every interval."""

    def __init__(self, limiter: FixedWindowRateLimiter, interval_seconds: Optional[float] = None) -> None:
        self.limiter = limiter
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else limiter.window_ms / 1000
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="chat-rate-limit-sweeper")
        logger.info("Rate limit sweeper started (every %.1fs)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Rate limit sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.limiter.sweep_expired()
            except Exception as exc:
                logger.error("Rate limit sweep failed: %s", exc, exc_info=True)


def client_key(request: Request) -> str:
    """
    Caller identifier for rate limiting.

    First address in X-Forwarded-For (set by the trusted reverse proxy),
    else the shared UNKNOWN_CALLER bucket.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    return first or UNKNOWN_CALLER


def get_chat_limiter(request: Request) -> FixedWindowRateLimiter:
    """FastAPI dependency — the limiter owned by the running app."""
    return request.app.state.chat_limiter


def enforce_chat_rate_limit(request: Request) -> str:
    """
    FastAPI dependency run before the chat handler touches the body.

    Returns the caller key on success; raises ChatRateLimitExceeded otherwise.
    """
    key = client_key(request)
    decision = get_chat_limiter(request).check_and_consume(key)
    if not decision.allowed:
        logger.info(
            "Chat rate limit hit for %s (retry in %d ms)", key, decision.retry_after_ms
        )
        raise ChatRateLimitExceeded(decision.retry_after_ms)
    return key
