"""
Module: delivery/retry.py
Description: Response classification and retry policy for webhook delivery.

Maps a transport outcome to the action the pipeline takes, and decides
whether and when a failed delivery is re-enqueued. Retries are never
performed in-process: the policy only computes the next trigger request
and its delay, and the scheduler re-enqueues the whole job.
"""

from enum import Enum
from typing import NamedTuple, Optional

from webhook_emitter.models.delivery import DeliveryResponse
from webhook_emitter.models.trigger import TriggerRequest

GONE_STATUSES = frozenset({404, 410})


class DeliveryOutcome(str, Enum):
    """Classification of one delivery attempt."""

    SUCCESS = "success"
    PERMANENT_FAILURE = "permanent_failure"
    RETRYABLE_FAILURE = "retryable_failure"
    INCONCLUSIVE = "inconclusive"


def classify_response(response: Optional[DeliveryResponse]) -> DeliveryOutcome:
    """
    Classify a transport outcome.

    Args:
        response: Transport response, or None when no status was obtained

    Returns:
        INCONCLUSIVE for no response, SUCCESS for 2xx, PERMANENT_FAILURE
        for 404/410, RETRYABLE_FAILURE for any other status
    """
    if response is None:
        return DeliveryOutcome.INCONCLUSIVE
    if 200 <= response.status <= 299:
        return DeliveryOutcome.SUCCESS
    if response.status in GONE_STATUSES:
        return DeliveryOutcome.PERMANENT_FAILURE
    return DeliveryOutcome.RETRYABLE_FAILURE


class ScheduledRetry(NamedTuple):
    trigger: TriggerRequest
    delay_minutes: int


class RetryPolicy:
    """
    Bounded exponential retry budget.

    Attributes:
        enabled: Global retry toggle
        max_retry_count: Retries allowed per logical delivery
        backoff_base: Base of the delay, in minutes
    """

    def __init__(self, enabled: bool = True, max_retry_count: int = 4, backoff_base: int = 5):
        if max_retry_count < 0:
            raise ValueError("max_retry_count must be non-negative")
        if backoff_base < 1:
            raise ValueError("backoff_base must be at least 1")

        self.enabled = enabled
        self.max_retry_count = max_retry_count
        self.backoff_base = backoff_base

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            enabled=settings.retry_enabled,
            max_retry_count=settings.max_retry_count,
            backoff_base=settings.retry_backoff_base
        )

    def delay_minutes(self, attempt_count: int) -> int:
        """Delay before re-running a job that now carries attempt_count (>= 1)."""
        if attempt_count < 1:
            raise ValueError("attempt_count must be at least 1 when scheduling a retry")
        return self.backoff_base ** (attempt_count - 1)

    def next_retry(self, trigger: TriggerRequest) -> Optional[ScheduledRetry]:
        """
        Compute the retry for a retryable failure.

        Returns:
            ScheduledRetry with the incremented trigger and its delay, or
            None when retries are disabled or the budget is exhausted
        """
        if not self.enabled:
            return None

        retried = trigger.next_attempt()
        if retried.attempt_count > self.max_retry_count:
            return None

        return ScheduledRetry(retried, self.delay_minutes(retried.attempt_count))

    def should_deactivate(self, trigger: TriggerRequest) -> bool:
        """A 404/410 strike deactivates only once the retry budget is used up."""
        return trigger.attempt_count >= self.max_retry_count
