"""
app/services/rate_limiter.py

Purpose: Per-destination rate limiting for code issuance

- Fixed window counter keyed by destination
- Windows reset lazily on the next request after they elapse
- Optional background sweep of long-idle records
- Only the issuance path is gated; verification is never limited here
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.db.memory_store import KeyedStore
from app.core.logging import get_logger
from utils.time_utils import utc_now, is_window_elapsed, seconds_until_window_end
from utils.validation_utils import mask_phone_number

logger = get_logger(__name__)


@dataclass
class RateLimitRecord:
    destination: str
    count: int
    window_start: datetime


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of an admission check."""
    allowed: bool
    retry_after: Optional[int] = None  # seconds, only set when denied
    remaining: int = 0  # requests left in the current window


class RateLimiter:
    """
    Admits or denies code requests per destination.

    A destination may make ``max_requests`` requests per
    ``window_seconds``. The window starts at the first request and is
    replaced by a fresh one on the first request after it elapses.
    """

    def __init__(
        self,
        window_seconds: int = 60,
        max_requests: int = 3,
        store: Optional[KeyedStore[RateLimitRecord]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.store: KeyedStore[RateLimitRecord] = store or KeyedStore("rate_limits")
        self.clock = clock

    async def admit(self, destination: str, now: Optional[datetime] = None) -> RateLimitDecision:
        """
        Counts a request against the destination's window.

        Args:
            destination: Canonical phone number
            now: Override for the current time

        Returns:
            RateLimitDecision (allowed, or denied with retry_after seconds)
        """
        async with self.store.locked(destination):
            now = now or self.clock()
            record = self.store.get(destination)

            if record is None or is_window_elapsed(record.window_start, self.window_seconds, now):
                self.store.put(destination, RateLimitRecord(destination, count=1, window_start=now))
                return RateLimitDecision(allowed=True, remaining=self.max_requests - 1)

            if record.count >= self.max_requests:
                retry_after = seconds_until_window_end(record.window_start, self.window_seconds, now)
                logger.warning(
                    f"Rate limit exceeded for {mask_phone_number(destination)}",
                    extra={"retry_after": retry_after}
                )
                return RateLimitDecision(allowed=False, retry_after=retry_after)

            record.count += 1
            return RateLimitDecision(allowed=True, remaining=self.max_requests - record.count)

    async def purge_stale(self, retention_windows: int = 10, now: Optional[datetime] = None) -> int:
        """
        Deletes records whose window ended more than ``retention_windows``
        windows ago. Such records would be reset on their next access
        anyway, so admission results are unaffected.

        Returns:
            Number of records removed
        """
        now = now or self.clock()
        cutoff = timedelta(seconds=self.window_seconds * (retention_windows + 1))
        removed = 0

        for destination in self.store.keys():
            async with self.store.locked(destination):
                record = self.store.get(destination)
                if record is not None and now - record.window_start > cutoff:
                    self.store.delete(destination)
                    removed += 1

        if removed:
            logger.info(f"Purged {removed} stale rate limit records")

        return removed

    async def run_sweeper(self, interval_seconds: int, retention_windows: int = 10):
        """
        Background loop calling purge_stale every ``interval_seconds``.
        Runs until cancelled.
        """
        logger.info(f"Rate limit sweeper started (every {interval_seconds}s)")
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.purge_stale(retention_windows)
            except Exception as e:
                logger.error(f"Rate limit sweep failed: {e}", exc_info=True)
