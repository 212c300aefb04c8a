# membertracker_client/transport/retry_policy.py
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from ..settings import Settings, settings as default_settings
from .errors import ApiError, HttpFailure, NetworkFailure
from .models import RequestAttempt

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """
    Decides whether a failed call is resent and waits out the backoff.

    Only transient failures qualify: no response at all, or a 5xx status.
    401 and 403 responses never reach this policy. The wait before resend
    number N is N * base delay, so the default budget waits 1s, 2s, then 3s.
    """

    def __init__(
        self,
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        sleep: Optional[SleepFunc] = None,
        settings: Optional[Settings] = None
    ):
        cfg = settings or default_settings
        self.max_retries = cfg.api_retry_attempts if max_retries is None else max_retries
        self.base_delay_ms = cfg.api_retry_delay_ms if base_delay_ms is None else base_delay_ms
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._retry_stats: Dict[str, int] = {
            "total_retries": 0,
            "exhausted": 0,
        }

    def is_retryable(self, failure: ApiError) -> bool:
        """True for failures that may succeed when sent again unchanged."""
        if isinstance(failure, NetworkFailure):
            return True
        if isinstance(failure, HttpFailure):
            return 500 <= failure.status < 600
        return False

    def should_retry(self, attempt: RequestAttempt, failure: ApiError) -> bool:
        return self.is_retryable(failure) and attempt.retry_count < self.max_retries

    def calculate_delay(self, attempt_number: int) -> float:
        """
        Backoff in seconds before resend number `attempt_number` (1-based).

        Formula: attempt_number * base_delay
        """
        return attempt_number * self.base_delay_ms / 1000

    async def wait_for_retry(self, attempt: RequestAttempt, failure: ApiError) -> bool:
        """
        Consume one transient retry for `attempt` and sleep through its backoff.

        Returns:
            True if the caller should resend the attempt, False if the failure
            must be surfaced unchanged.
        """
        if not self.should_retry(attempt, failure):
            if self.is_retryable(failure):
                self._retry_stats["exhausted"] += 1
            return False

        attempt.retry_count += 1
        self._retry_stats["total_retries"] += 1
        delay = self.calculate_delay(attempt.retry_count)
        logger.warning(
            f"RETRY: Attempt {attempt.retry_count}/{self.max_retries} for "
            f"{attempt.method} {attempt.url} in {delay:.2f}s after: {failure.message}"
        )
        await self._sleep(delay)
        return True

    def get_retry_stats(self) -> Dict[str, int]:
        return dict(self._retry_stats)
