"""
Module: delivery/worker.py
Description: SQS worker Lambda for webhook delivery jobs.

Processes delivery jobs from the delivery queue. Each message runs the
delivery pipeline once; messages that surface before their not_before
time are re-deferred. Non-retryable job errors are logged and dropped,
anything else is reported back to SQS for redelivery.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from webhook_emitter.config.settings import settings
from webhook_emitter.delivery.job import WebhookDeliveryJob
from webhook_emitter.models.trigger import TriggerRequest
from webhook_emitter.sqs_queue.sqs import DeliveryMessage
from webhook_emitter.utils.errors import WebhookDeliveryError
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)


async def process_record(
    record: Dict[str, Any],
    job: WebhookDeliveryJob,
    now: Optional[datetime] = None
) -> None:
    """
    Process one SQS record.

    Args:
        record: SQS record with a JSON DeliveryMessage body
        job: Delivery job to run
        now: Current time (defaults to UTC now)

    Raises:
        Exception: Any error that should return the message to the queue
    """
    now = now or datetime.now(timezone.utc)
    message_id = record.get('messageId')

    try:
        message = DeliveryMessage.model_validate(json.loads(record['body']))
        trigger = TriggerRequest.model_validate(message.trigger)

    except (KeyError, ValueError, ValidationError) as e:
        logger.error(
            "Rejected malformed delivery message",
            message_id=message_id,
            error=str(e)
        )
        return

    if message.seconds_remaining(now) > 0:
        deferred_id = await job.scheduler.defer(message, now=now)
        logger.debug(
            "Delivery job not due yet, deferred",
            message_id=message_id,
            deferred_message_id=deferred_id,
            subscription_id=trigger.subscription_id,
            not_before=message.not_before.isoformat()
        )
        return

    logger.info(
        "Processing delivery job from SQS",
        message_id=message_id,
        subscription_id=trigger.subscription_id,
        event_type=trigger.event_type,
        attempt_count=trigger.attempt_count
    )

    try:
        await job.execute(trigger)

    except WebhookDeliveryError as e:
        logger.error(
            "Rejected delivery job",
            message_id=message_id,
            subscription_id=trigger.subscription_id,
            event_type=trigger.event_type,
            error=str(e),
            error_type=type(e).__name__
        )


async def process_records(records: List[Dict[str, Any]], job: WebhookDeliveryJob) -> List[Dict[str, str]]:
    """
    Process a batch of SQS records independently.

    Returns:
        batchItemFailures entries for records that should be redelivered
    """
    batch_failures = []

    for record in records:
        try:
            await process_record(record, job)

        except Exception as e:
            logger.error(
                "Error processing SQS message",
                message_id=record.get('messageId'),
                error=str(e),
                error_type=type(e).__name__
            )
            batch_failures.append({
                'itemIdentifier': record['messageId']
            })

    return batch_failures


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for SQS delivery job processing.

    Args:
        event: SQS event with batch of messages
        context: Lambda context

    Returns:
        Response with batch item failures (if any)
    """
    job = WebhookDeliveryJob.from_settings(settings)
    batch_failures = asyncio.run(process_records(event.get('Records', []), job))

    return {'batchItemFailures': batch_failures}
