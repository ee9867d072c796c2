import logging
import time
from dataclasses import dataclass
from typing import Protocol

from upstash_ratelimit import SlidingWindow
from upstash_ratelimit.asyncio import Ratelimit
from upstash_redis.asyncio import Redis

from app.core.config import Settings
from app.grading.artifacts import AdmissionDecision

logger = logging.getLogger(__name__)

# Reported as `remaining` whenever admission is not being enforced.
UNLIMITED_REMAINING = 999


def _now_ms() -> int:
    return int(time.time() * 1000)


def _fail_open() -> AdmissionDecision:
    return AdmissionDecision(success=True, remaining=UNLIMITED_REMAINING, reset_at=_now_ms())


@dataclass(frozen=True)
class LimitOutcome:
    allowed: bool
    remaining: int
    reset_at: int  # epoch ms


class CounterStore(Protocol):
    """Atomic increment-and-check over a per-key sliding window."""

    async def limit(self, key: str) -> LimitOutcome: ...


class UpstashCounterStore:
    """Sliding-window counter backed by Upstash Redis over its REST API."""

    def __init__(self, ratelimit: Ratelimit):
        self._ratelimit = ratelimit

    @classmethod
    def from_settings(cls, settings: Settings) -> "UpstashCounterStore":
        redis = Redis(url=settings.UPSTASH_REDIS_REST_URL, token=settings.UPSTASH_REDIS_REST_TOKEN)
        ratelimit = Ratelimit(
            redis=redis,
            limiter=SlidingWindow(max_requests=settings.GRADE_QUOTA, window=settings.GRADE_WINDOW_SECONDS),
            prefix=settings.GRADE_RATE_LIMIT_PREFIX,
        )
        return cls(ratelimit)

    async def limit(self, key: str) -> LimitOutcome:
        response = await self._ratelimit.limit(key)
        # upstash-ratelimit reports the reset as epoch seconds.
        return LimitOutcome(
            allowed=response.allowed,
            remaining=response.remaining,
            reset_at=int(response.reset * 1000),
        )


class AdmissionController:
    """Per-user grading quota enforced by an external counter store."""

    enforced = True

    def __init__(self, store: CounterStore, *, quota: int):
        self.store = store
        self.quota = quota
        self._outage_reported = False

    async def check(self, user_id: str) -> AdmissionDecision:
        try:
            outcome = await self.store.limit(user_id)
        except Exception as exc:
            # An unreachable limiter must not take grading down with it.
            if not self._outage_reported:
                logger.warning("Rate limiter unavailable, admitting requests without a quota: %s", exc)
                self._outage_reported = True
            else:
                logger.debug("Rate limiter still unavailable: %s", exc)
            return _fail_open()

        if not outcome.allowed:
            logger.info("Grading quota exhausted for user %s until %s", user_id, outcome.reset_at)
        return AdmissionDecision(
            success=outcome.allowed,
            remaining=outcome.remaining,
            reset_at=outcome.reset_at,
        )


class DisabledAdmissionController:
    """Stand-in used when no limiter backend is configured; admits everything."""

    enforced = False

    def __init__(self, *, quota: int):
        self.quota = quota
        self._warned = False

    async def check(self, user_id: str) -> AdmissionDecision:
        if not self._warned:
            logger.warning("Upstash Redis credentials not configured. Rate limiting disabled.")
            self._warned = True
        return _fail_open()


def build_admission_controller(settings: Settings) -> AdmissionController | DisabledAdmissionController:
    """Construct the controller once at startup from the limiter credentials, if any."""
    if not settings.rate_limit_configured:
        return DisabledAdmissionController(quota=settings.GRADE_QUOTA)

    try:
        store = UpstashCounterStore.from_settings(settings)
    except Exception as exc:
        logger.warning("Failed to initialize rate limiter. Rate limiting disabled: %s", exc)
        return DisabledAdmissionController(quota=settings.GRADE_QUOTA)
    return AdmissionController(store, quota=settings.GRADE_QUOTA)
