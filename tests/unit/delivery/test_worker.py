"""
Module: test_worker.py
Description: Unit tests for the SQS delivery worker.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from webhook_emitter.delivery import worker
from webhook_emitter.delivery.retry import DeliveryOutcome
from webhook_emitter.models.trigger import TriggerRequest
from webhook_emitter.utils.errors import InvalidParameters, MalformedPayload

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def sqs_record(message_id="msg_1", not_before=None, **trigger):
    trigger = trigger or {"subscription_id": "sub_1", "event_type": "ping"}
    return {
        "messageId": message_id,
        "body": json.dumps({
            "trigger": trigger,
            "not_before": not_before.isoformat() if not_before else None
        })
    }


@pytest.fixture
def job():
    job = MagicMock()
    job.execute = AsyncMock(return_value=DeliveryOutcome.SUCCESS)
    job.scheduler = AsyncMock()
    job.scheduler.defer.return_value = "msg_deferred"
    return job


class TestProcessRecord:

    @pytest.mark.asyncio
    async def test_due_message_runs_job(self, job):
        await worker.process_record(sqs_record(), job, now=NOW)

        job.execute.assert_awaited_once_with(
            TriggerRequest(subscription_id="sub_1", event_type="ping")
        )
        job.scheduler.defer.assert_not_called()

    @pytest.mark.asyncio
    async def test_attempt_count_survives_the_queue(self, job):
        record = sqs_record(
            subscription_id="sub_1",
            event_type="post_created",
            payload='{"id": 1}',
            attempt_count=3
        )

        await worker.process_record(record, job, now=NOW)

        assert job.execute.call_args.args[0].attempt_count == 3

    @pytest.mark.asyncio
    async def test_early_message_is_deferred(self, job):
        await worker.process_record(
            sqs_record(not_before=NOW + timedelta(minutes=30)),
            job,
            now=NOW
        )

        job.execute.assert_not_called()
        deferred = job.scheduler.defer.call_args.args[0]
        assert deferred.not_before == NOW + timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_past_not_before_runs_job(self, job):
        await worker.process_record(sqs_record(not_before=NOW - timedelta(seconds=1)), job, now=NOW)

        job.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_malformed_body_is_dropped(self, job):
        await worker.process_record({"messageId": "msg_1", "body": "not json"}, job, now=NOW)

        job.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_trigger_fields_are_dropped(self, job):
        await worker.process_record(sqs_record(subscription_id="sub_1", attempt_count=-1), job, now=NOW)

        job.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        InvalidParameters("event_type"),
        MalformedPayload("post_created", "Expecting value")
    ])
    async def test_rejected_jobs_are_not_raised(self, job, error):
        job.execute.side_effect = error

        await worker.process_record(sqs_record(), job, now=NOW)

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, job):
        job.execute.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await worker.process_record(sqs_record(), job, now=NOW)


class TestProcessRecords:

    @pytest.mark.asyncio
    async def test_reports_only_failed_records(self, job):
        job.execute.side_effect = [
            DeliveryOutcome.SUCCESS,
            ClientError(
                error_response={'Error': {'Code': 'InternalServerError', 'Message': 'Test error'}},
                operation_name='PutItem'
            ),
            InvalidParameters("payload"),
        ]

        failures = await worker.process_records(
            [sqs_record("msg_1"), sqs_record("msg_2"), sqs_record("msg_3")],
            job
        )

        assert failures == [{"itemIdentifier": "msg_2"}]
        assert job.execute.await_count == 3


class TestHandler:

    def test_handler_returns_batch_failures(self, job):
        job.execute.side_effect = RuntimeError("boom")

        with patch.object(worker.WebhookDeliveryJob, "from_settings", return_value=job):
            result = worker.handler({"Records": [sqs_record("msg_9")]}, None)

        assert result == {"batchItemFailures": [{"itemIdentifier": "msg_9"}]}

    def test_handler_with_no_records(self, job):
        with patch.object(worker.WebhookDeliveryJob, "from_settings", return_value=job):
            assert worker.handler({}, None) == {"batchItemFailures": []}
