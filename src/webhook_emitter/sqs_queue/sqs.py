"""
Module: sqs.py
Description: SQS client and scheduler for delivery jobs.

Handles sending delivery jobs to the delivery queue, either for
immediate processing or after a delay in whole minutes. SQS caps
DelaySeconds at 15 minutes, so each message carries a `not_before`
timestamp and the worker re-defers messages that surface early.
"""

import json
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from aioboto3 import Session
from botocore.exceptions import ClientError
from pydantic import BaseModel, Field
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential
)

from webhook_emitter.models.trigger import TriggerRequest
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)

MAX_SQS_DELAY_SECONDS = 900

TRANSIENT_ERROR_CODES = frozenset({
    'ThrottlingException',
    'RequestThrottled',
    'ServiceUnavailable',
    'InternalError',
})


def _is_transient(e: BaseException) -> bool:
    return isinstance(e, ClientError) and e.response['Error']['Code'] in TRANSIENT_ERROR_CODES


# Retry transient SQS errors when enqueueing; never used for deliveries
send_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
    retry=retry_if_exception(_is_transient),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True
)


class DeliveryMessage(BaseModel):
    """
    Wire format of a queued delivery job.

    Attributes:
        trigger: Trigger request fields, validated by the job itself
        not_before: Earliest time the job may run
    """

    trigger: Dict[str, Any] = Field(..., description="Trigger request fields")
    not_before: Optional[datetime] = Field(
        default=None,
        description="Earliest time the job may run"
    )

    def seconds_remaining(self, now: datetime) -> int:
        if self.not_before is None:
            return 0
        return max(0, math.ceil((self.not_before - now).total_seconds()))


class SQSClient:
    """
    SQS client for delivery job messages.

    Provides sending of delivery jobs with an optional delay.
    """

    def __init__(self, queue_url: str):
        """
        Initialize SQS client.

        Args:
            queue_url: URL of the SQS queue
        """
        if not queue_url or not isinstance(queue_url, str):
            raise ValueError("queue_url must be a non-empty string")

        self.queue_url = queue_url
        self.session = Session()

        logger.debug(
            "SQS client initialized",
            queue_url=queue_url
        )

    @send_retry
    async def send_message(
        self,
        message_body: Dict[str, Any],
        attributes: Optional[Dict[str, str]] = None,
        delay_seconds: int = 0
    ) -> str:
        """
        Send a message to the SQS queue.

        Args:
            message_body: JSON-serializable message body
            attributes: Optional string message attributes
            delay_seconds: Delay before the message becomes available (0-900)

        Returns:
            Message ID from SQS

        Raises:
            ClientError: If SQS operation fails
            ValueError: If parameters are invalid
        """
        if not message_body or not isinstance(message_body, dict):
            raise ValueError("message_body must be a non-empty dictionary")
        if not 0 <= delay_seconds <= MAX_SQS_DELAY_SECONDS:
            raise ValueError(f"delay_seconds must be between 0 and {MAX_SQS_DELAY_SECONDS}")

        message_attributes = {
            name: {'StringValue': value, 'DataType': 'String'}
            for name, value in (attributes or {}).items()
            if value
        }

        try:
            async with self.session.client('sqs') as sqs:
                response = await sqs.send_message(
                    QueueUrl=self.queue_url,
                    MessageBody=json.dumps(message_body),
                    MessageAttributes=message_attributes,
                    DelaySeconds=delay_seconds
                )

        except ClientError as e:
            logger.error(
                "Failed to send message to SQS",
                queue_url=self.queue_url,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        message_id = response['MessageId']
        logger.info(
            "Message sent to SQS",
            message_id=message_id,
            delay_seconds=delay_seconds,
            queue_url=self.queue_url
        )

        return message_id


class DeliveryScheduler:
    """
    Enqueues delivery jobs, now or after a delay in whole minutes.

    Example:
        >>> scheduler = DeliveryScheduler(SQSClient(settings.delivery_queue_url))
        >>> await scheduler.enqueue_in(25, trigger.next_attempt())
    """

    def __init__(self, sqs_client: SQSClient):
        self.sqs_client = sqs_client

    async def enqueue(self, trigger: TriggerRequest) -> str:
        return await self.enqueue_in(0, trigger)

    async def enqueue_in(
        self,
        delay_minutes: int,
        trigger: TriggerRequest,
        now: Optional[datetime] = None
    ) -> str:
        """
        Run the delivery job for `trigger` again after `delay_minutes`.

        Args:
            delay_minutes: Whole minutes to wait (0 runs as soon as possible)
            trigger: Trigger request to deliver

        Returns:
            SQS message ID
        """
        if delay_minutes < 0:
            raise ValueError("delay_minutes must be non-negative")

        now = now or datetime.now(timezone.utc)
        message = DeliveryMessage(
            trigger=trigger.model_dump(mode='json', exclude_none=True),
            not_before=now + timedelta(minutes=delay_minutes) if delay_minutes else None
        )
        return await self._send(message, now)

    async def defer(self, message: DeliveryMessage, now: Optional[datetime] = None) -> str:
        """Put back a message that surfaced before its not_before time."""
        return await self._send(message, now or datetime.now(timezone.utc))

    async def _send(self, message: DeliveryMessage, now: datetime) -> str:
        delay_seconds = min(message.seconds_remaining(now), MAX_SQS_DELAY_SECONDS)

        return await self.sqs_client.send_message(
            message_body=message.model_dump(mode='json'),
            attributes={
                'SubscriptionId': str(message.trigger.get('subscription_id') or ''),
                'EventType': str(message.trigger.get('event_type') or ''),
            },
            delay_seconds=delay_seconds
        )
