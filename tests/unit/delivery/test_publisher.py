"""
Module: test_publisher.py
Description: Unit tests for staff delivery notifications.
"""

import json
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError

from webhook_emitter.delivery.publisher import EventPublisher, channel_for


class TestEventPublisher:

    def test_requires_topic(self):
        with pytest.raises(ValueError, match="topic_arn must be a non-empty string"):
            EventPublisher("")

    def test_channel_is_namespaced_by_subscription(self):
        assert channel_for("sub_42") == "subscription-events/sub_42"

    def test_publish_delivery_payload_and_audience(self, aws):
        publisher = EventPublisher("arn:aws:sns:us-east-1:123456789012:staff", audience="staff")
        publisher.sns = MagicMock()

        publisher.publish_delivery("sub_42", "dlv_abc123abc123", "post_created")

        kwargs = publisher.sns.publish.call_args.kwargs
        assert kwargs["TopicArn"] == "arn:aws:sns:us-east-1:123456789012:staff"
        assert json.loads(kwargs["Message"]) == {
            "delivery_record_id": "dlv_abc123abc123",
            "event_type": "post_created",
        }
        assert kwargs["MessageAttributes"]["channel"]["StringValue"] == "subscription-events/sub_42"
        assert kwargs["MessageAttributes"]["audience"]["StringValue"] == "staff"

    def test_publish_to_real_topic(self, aws):
        topic_arn = boto3.client("sns", region_name="us-east-1").create_topic(Name="staff")["TopicArn"]
        publisher = EventPublisher(topic_arn)

        publisher.publish_delivery("sub_42", "dlv_abc123abc123", "ping")

    def test_publish_failure_is_swallowed(self, aws):
        publisher = EventPublisher("arn:aws:sns:us-east-1:123456789012:staff")
        publisher.sns = MagicMock()
        publisher.sns.publish.side_effect = ClientError(
            error_response={'Error': {'Code': 'NotFound', 'Message': 'Topic does not exist'}},
            operation_name='Publish'
        )

        publisher.publish_delivery("sub_42", "dlv_abc123abc123", "ping")

        publisher.sns.publish.assert_called_once()
