"""Builds the admission gate selected by settings."""

import logging
from typing import Optional

from notekeeper.admission.base import AdmissionGate
from notekeeper.admission.memory import InMemorySlidingWindowGate
from notekeeper.admission.redis_store import RedisSlidingWindowGate
from notekeeper.config import Settings

logger = logging.getLogger(__name__)


def build_admission_gate(settings: Settings) -> Optional[AdmissionGate]:
    """Return the configured gate, or None when rate limiting is disabled."""
    if not settings.rate_limit_enabled:
        logger.info("Rate limiting disabled")
        return None

    if settings.rate_limit_backend == "redis":
        return RedisSlidingWindowGate.from_url(
            settings.redis_url,
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window,
            prefix=settings.redis_key_prefix,
        )

    return InMemorySlidingWindowGate(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )
