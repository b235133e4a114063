"""
Module: test_retry.py
Description: Unit tests for response classification and retry policy.
"""

import pytest

from webhook_emitter.delivery.retry import DeliveryOutcome, RetryPolicy, classify_response
from webhook_emitter.models.delivery import DeliveryResponse
from webhook_emitter.models.trigger import TriggerRequest


def response(status):
    return DeliveryResponse(status=status)


def trigger_at(attempt_count):
    return TriggerRequest(
        subscription_id="sub_1",
        event_type="post_created",
        payload='{"id": 1}',
        attempt_count=attempt_count
    )


class TestClassifyResponse:

    def test_no_response_is_inconclusive(self):
        assert classify_response(None) is DeliveryOutcome.INCONCLUSIVE

    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_2xx_is_success(self, status):
        assert classify_response(response(status)) is DeliveryOutcome.SUCCESS

    @pytest.mark.parametrize("status", [404, 410])
    def test_gone_is_permanent_failure(self, status):
        assert classify_response(response(status)) is DeliveryOutcome.PERMANENT_FAILURE

    @pytest.mark.parametrize("status", [100, 301, 400, 401, 403, 429, 500, 502, 503])
    def test_other_statuses_are_retryable(self, status):
        assert classify_response(response(status)) is DeliveryOutcome.RETRYABLE_FAILURE


class TestRetryPolicy:

    def test_backoff_schedule(self):
        policy = RetryPolicy(enabled=True, max_retry_count=4, backoff_base=5)
        trigger = trigger_at(0)
        delays = []

        while True:
            scheduled = policy.next_retry(trigger)
            if scheduled is None:
                break
            delays.append(scheduled.delay_minutes)
            trigger = scheduled.trigger

        assert delays == [1, 5, 25, 125]
        assert trigger.attempt_count == 4

    def test_no_retry_after_budget_exhausted(self):
        policy = RetryPolicy(max_retry_count=4)
        assert policy.next_retry(trigger_at(4)) is None

    def test_retry_carries_incremented_copy(self):
        policy = RetryPolicy(max_retry_count=4)
        original = trigger_at(2)

        scheduled = policy.next_retry(original)

        assert scheduled.trigger.attempt_count == 3
        assert scheduled.trigger.payload == original.payload
        assert original.attempt_count == 2

    def test_disabled_policy_never_retries(self):
        policy = RetryPolicy(enabled=False)
        assert policy.next_retry(trigger_at(0)) is None

    def test_zero_budget_never_retries(self):
        policy = RetryPolicy(max_retry_count=0)
        assert policy.next_retry(trigger_at(0)) is None

    def test_delay_requires_scheduled_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy().delay_minutes(0)

    @pytest.mark.parametrize("attempt_count,expected", [(0, False), (3, False), (4, True), (5, True)])
    def test_should_deactivate_at_budget(self, attempt_count, expected):
        policy = RetryPolicy(max_retry_count=4)
        assert policy.should_deactivate(trigger_at(attempt_count)) is expected

    def test_from_settings(self, test_settings):
        policy = RetryPolicy.from_settings(test_settings)

        assert policy.enabled is True
        assert policy.max_retry_count == 4
        assert policy.backoff_base == 5

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retry_count=-1)
        with pytest.raises(ValueError):
            RetryPolicy(backoff_base=0)
