"""
Per-caller cooldown between repository analyses.

Each caller identity may start one analysis per cooldown window. Entries
older than the TTL are evicted on every check, so the map only holds callers
seen recently.
"""

import asyncio
import logging
import math
import time
from typing import Callable, Dict, Optional

from stackscout.config import DEFAULT_RATE_LIMIT_SECONDS
from stackscout.errors import RateLimitError

logger = logging.getLogger(__name__)


class CallerRateLimiter:
    """
    In-memory cooldown limiter keyed by caller identity.
    """

    def __init__(
        self,
        cooldown_seconds: float = DEFAULT_RATE_LIMIT_SECONDS,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            cooldown_seconds: Minimum spacing between two analyses by one caller
            ttl_seconds: How long an entry is kept; twice the cooldown by default
            clock: Time source, injectable for tests
        """
        self.cooldown_seconds = cooldown_seconds
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else cooldown_seconds * 2
        self._clock = clock

        # {caller_id: timestamp of the last accepted analysis}
        self._last_seen: Dict[str, float] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._last_seen)

    def _evict_expired(self, now: float) -> None:
        expired = [caller for caller, ts in self._last_seen.items() if now - ts >= self.ttl_seconds]
        for caller in expired:
            del self._last_seen[caller]

    async def check(self, caller_id: str) -> None:
        """
        Record an analysis for ``caller_id`` or reject it.

        Raises:
            RateLimitError: The caller's previous analysis is inside the cooldown
        """
        async with self._lock:
            now = self._clock()
            self._evict_expired(now)

            last = self._last_seen.get(caller_id)
            if last is not None:
                elapsed = now - last
                if elapsed < self.cooldown_seconds:
                    retry_after = max(1, math.ceil(self.cooldown_seconds - elapsed))
                    logger.warning(f"Rate limit exceeded for caller {caller_id}: retry in {retry_after}s")
                    raise RateLimitError(
                        f"Please wait {retry_after} seconds before analyzing another repository",
                        retry_after=retry_after,
                    )

            self._last_seen[caller_id] = now

    async def reset(self) -> None:
        async with self._lock:
            self._last_seen.clear()
