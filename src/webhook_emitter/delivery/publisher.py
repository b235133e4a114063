"""
Module: publisher.py
Description: Live staff notifications for delivery attempts.

Publishes one message per delivery attempt to an SNS topic, tagged with
a per-subscription channel and a restricted audience. Subscribers
(e.g. a websocket fan-out) route on the message attributes.
Publishing is best effort: failures are logged and never break a
delivery job.
"""

import json
from typing import Any, Dict

import boto3

from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)


def channel_for(subscription_id: str) -> str:
    return f"subscription-events/{subscription_id}"


class EventPublisher:
    """SNS publisher for staff-only delivery notifications."""

    def __init__(self, topic_arn: str, audience: str = "staff"):
        """
        Initialize publisher.

        Args:
            topic_arn: SNS topic receiving notifications
            audience: Audience allowed to see the notifications
        """
        if not topic_arn or not isinstance(topic_arn, str):
            raise ValueError("topic_arn must be a non-empty string")

        self.topic_arn = topic_arn
        self.audience = audience
        self.sns = boto3.client('sns')

    def publish(self, channel: str, payload: Dict[str, Any], audience: str) -> None:
        try:
            self.sns.publish(
                TopicArn=self.topic_arn,
                Message=json.dumps(payload),
                MessageAttributes={
                    'channel': {'DataType': 'String', 'StringValue': channel},
                    'audience': {'DataType': 'String', 'StringValue': audience},
                }
            )

            logger.debug(
                "Delivery notification published",
                channel=channel,
                audience=audience,
                topic_arn=self.topic_arn
            )

        except Exception as e:
            logger.warning(
                "Failed to publish delivery notification",
                channel=channel,
                error=str(e),
                error_type=type(e).__name__,
                topic_arn=self.topic_arn
            )

    def publish_delivery(self, subscription_id: str, delivery_id: str, event_type: str) -> None:
        """Announce a delivery attempt on the subscription's staff channel."""
        self.publish(
            channel=channel_for(subscription_id),
            payload={'delivery_record_id': delivery_id, 'event_type': event_type},
            audience=self.audience
        )
