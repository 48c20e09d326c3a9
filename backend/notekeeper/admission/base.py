"""Admission gate interface.

A gate answers one question for a key at the current instant: may this
request proceed? Implementations differ only in where the sliding-window
counters live.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from notekeeper.exceptions import AdmissionDeniedError


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of a single admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max admissions per window.
        remaining: Admissions left in the current window (0 when denied).
        retry_after_seconds: Seconds until the oldest admission leaves the
            window; only set when denied.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int | None = None


class AdmissionGate(ABC):
    """Sliding-window admission control: at most `limit` admissions per
    trailing `window_seconds`."""

    def __init__(self, *, limit: int, window_seconds: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        self.limit = limit
        self.window_seconds = window_seconds

    @abstractmethod
    async def check(self, key: str) -> AdmissionDecision:
        """Consume one admission for `key` if budget remains.

        Raises:
            AdmissionGateError: The backing counter could not be consulted.
        """
        raise NotImplementedError

    async def enforce(self, key: str) -> AdmissionDecision:
        """Like check(), but raise AdmissionDeniedError on deny."""
        if not key:
            raise ValueError("key must be a non-empty string")
        decision = await self.check(key)
        if not decision.allowed:
            raise AdmissionDeniedError(
                retry_after=decision.retry_after_seconds or 1,
                limit=decision.limit,
                context={"key": key},
            )
        return decision

    async def ping(self) -> bool:
        """Whether the backing counter is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources at shutdown."""
        return None
