"""In-memory sliding-window rate limiter for login and order endpoints.

Each protected route belongs to a scope ("login", "orders") with its own
budget. Budgets are tracked per client address, so a burst of failed logins
never eats into the same client's order submissions.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Request budget for one scope."""

    max_requests: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against a rule."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


@dataclass
class RateLimitConfig:
    """Per-scope rules plus housekeeping settings."""

    rules: dict[str, RateLimitRule] = field(
        default_factory=lambda: {
            "login": RateLimitRule(max_requests=10, window_seconds=60),
            "orders": RateLimitRule(max_requests=20, window_seconds=60),
        }
    )
    cleanup_interval_seconds: int = 300

    @classmethod
    def from_settings(cls) -> "RateLimitConfig":
        """Create config from application settings."""
        from src.core.config import get_settings

        settings = get_settings()
        window = settings.rate_limit_window_seconds
        return cls(
            rules={
                "login": RateLimitRule(settings.rate_limit_login_requests, window),
                "orders": RateLimitRule(settings.rate_limit_order_requests, window),
            }
        )

    def rule_for(self, scope: str) -> RateLimitRule:
        try:
            return self.rules[scope]
        except KeyError:
            raise ValueError(f"No rate limit rule for scope {scope!r}") from None


class SlidingWindowRateLimiter:
    """Thread-safe in-memory request log with periodic cleanup.

    Keys are ``"{scope}:{client}"``; each holds the monotonic timestamps of
    requests still inside the scope's window, oldest first.
    """

    def __init__(self, config: RateLimitConfig | None = None) -> None:
        self.config = config or RateLimitConfig()
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._cleanup_task: asyncio.Task | None = None

    async def start_cleanup_task(self) -> None:
        """Start background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Rate limiter cleanup task started")

    async def stop_cleanup_task(self) -> None:
        """Stop background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Rate limiter cleanup task stopped")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.cleanup_interval_seconds)
            removed = self.cleanup()
            if removed:
                logger.debug("Rate limiter dropped %d idle clients", removed)

    def hit(self, scope: str, client: str) -> RateLimitDecision:
        """Count a request from ``client`` against ``scope``.

        Rejected requests are not recorded, so a client that keeps retrying
        while blocked is let through as soon as its window frees up.

        Raises:
            ValueError: If the scope has no rule.
        """
        rule = self.config.rule_for(scope)
        now = time.monotonic()
        cutoff = now - rule.window_seconds

        with self._lock:
            hits = self._hits.setdefault(f"{scope}:{client}", deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= rule.max_requests:
                # Slot frees when the oldest request that still counts expires
                oldest = hits[len(hits) - rule.max_requests]
                retry_after = max(1, int(oldest + rule.window_seconds - now) + 1)
                return RateLimitDecision(False, rule.max_requests, 0, retry_after)

            hits.append(now)
            return RateLimitDecision(True, rule.max_requests, rule.max_requests - len(hits))

    def cleanup(self) -> int:
        """Forget clients with no requests inside their scope's window."""
        now = time.monotonic()
        removed = 0

        with self._lock:
            for key in list(self._hits):
                scope = key.split(":", 1)[0]
                window = self.config.rule_for(scope).window_seconds
                hits = self._hits[key]
                if not hits or hits[-1] <= now - window:
                    del self._hits[key]
                    removed += 1

        return removed

    def reset(self) -> None:
        """Drop all tracked clients."""
        with self._lock:
            self._hits.clear()


_rate_limiter: SlidingWindowRateLimiter | None = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Get or create the global rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = SlidingWindowRateLimiter(RateLimitConfig.from_settings())
    return _rate_limiter


async def init_rate_limiter() -> SlidingWindowRateLimiter:
    """Initialize rate limiter with cleanup task. Call at app startup."""
    limiter = get_rate_limiter()
    await limiter.start_cleanup_task()
    return limiter


async def shutdown_rate_limiter() -> None:
    """Shutdown rate limiter cleanup task. Call at app shutdown."""
    if _rate_limiter:
        await _rate_limiter.stop_cleanup_task()
