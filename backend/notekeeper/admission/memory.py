"""
Notekeeper Backend — In-Process Sliding Window Gate
====================================================

Algorithm: Sliding Window Log
    1. Each key gets a list of admission timestamps
    2. On each check, drop timestamps at or before now - window
    3. If remaining count >= limit, deny
    4. Otherwise, record the current timestamp and admit

    Denied attempts are not recorded, so a client hammering a closed gate
    does not push its own reopening further out.

Per-process only: running several workers multiplies the effective limit.
Use the Redis gate for shared budgets.
"""

import logging
import math
import time
from collections import defaultdict
from typing import Callable, Dict, List

from notekeeper.admission.base import AdmissionDecision, AdmissionGate

logger = logging.getLogger(__name__)

# Idle keys are swept every this many checks
CLEANUP_EVERY = 1000


class InMemorySlidingWindowGate(AdmissionGate):
    """
    Sliding window admission gate backed by a dict of timestamp lists.

    Safe for a single asyncio event loop: check() never awaits between
    reading and writing the window.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(limit=limit, window_seconds=window_seconds)
        self._clock = clock
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._checks = 0

    async def check(self, key: str) -> AdmissionDecision:
        now = self._clock()
        window_start = now - self.window_seconds

        timestamps = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = timestamps

        self._checks += 1
        if self._checks % CLEANUP_EVERY == 0:
            self._cleanup_inactive_keys(window_start)

        if len(timestamps) >= self.limit:
            oldest = timestamps[0]
            retry_after = max(1, math.ceil(oldest + self.window_seconds - now))
            return AdmissionDecision(
                allowed=False,
                limit=self.limit,
                remaining=0,
                retry_after_seconds=retry_after,
            )

        timestamps.append(now)
        return AdmissionDecision(
            allowed=True,
            limit=self.limit,
            remaining=self.limit - len(timestamps),
        )

    def _cleanup_inactive_keys(self, window_start: float) -> None:
        """Remove keys with no admissions inside the current window."""
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for key in inactive:
            del self._requests[key]

        if inactive:
            logger.debug("Cleaned up %d inactive rate limit keys", len(inactive))
