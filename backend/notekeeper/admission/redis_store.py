"""
Notekeeper Backend — Redis Sliding Window Gate
===============================================

What:  Sliding window admission gate whose counters live in Redis, so every
       worker and instance shares one budget. Works against any Redis URL,
       including hosted TLS endpoints (rediss://).

Algorithm: one sorted set per key, scored by admission time.
    MULTI
      ZREMRANGEBYSCORE key -inf (now - window)   # drop expired admissions
      ZADD key now <member>                      # tentatively admit
      ZCARD key                                  # count inside the window
      ZRANGE key 0 0 WITHSCORES                  # oldest admission
      EXPIRE key window                          # idle keys disappear
    EXEC
    If ZCARD > limit the tentative member is removed again and the request
    is denied.

Failure Policy:
    Any Redis error becomes AdmissionGateError. The request fails rather
    than being admitted or denied on a guess.
"""

import logging
import math
import time
import uuid
from typing import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from notekeeper.admission.base import AdmissionDecision, AdmissionGate
from notekeeper.exceptions import AdmissionGateError

logger = logging.getLogger(__name__)


class RedisSlidingWindowGate(AdmissionGate):

    def __init__(
        self,
        redis: Redis,
        *,
        limit: int,
        window_seconds: int,
        prefix: str = "notekeeper:ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(limit=limit, window_seconds=window_seconds)
        self._redis = redis
        self._prefix = prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisSlidingWindowGate":
        return cls(Redis.from_url(url), **kwargs)

    def _redis_key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def check(self, key: str) -> AdmissionDecision:
        now = self._clock()
        redis_key = self._redis_key(key)
        member = f"{now:.6f}:{uuid.uuid4().hex[:12]}"

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(redis_key, "-inf", now - self.window_seconds)
                pipe.zadd(redis_key, {member: now})
                pipe.zcard(redis_key)
                pipe.zrange(redis_key, 0, 0, withscores=True)
                pipe.expire(redis_key, self.window_seconds)
                _, _, count, oldest, _ = await pipe.execute()

            if count <= self.limit:
                return AdmissionDecision(
                    allowed=True,
                    limit=self.limit,
                    remaining=self.limit - count,
                )

            # Over budget: the tentative admission must not count
            await self._redis.zrem(redis_key, member)
        except RedisError as e:
            logger.error("Rate limiter backend error for key %s: %s", key, str(e))
            raise AdmissionGateError(
                context={"key": key, "error_type": type(e).__name__},
            ) from e

        oldest_score = oldest[0][1] if oldest else now
        retry_after = max(1, math.ceil(oldest_score + self.window_seconds - now))
        return AdmissionDecision(
            allowed=False,
            limit=self.limit,
            remaining=0,
            retry_after_seconds=retry_after,
        )

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.warning("Rate limiter backend unreachable: %s", str(e))
            return False

    async def close(self) -> None:
        await self._redis.aclose()
