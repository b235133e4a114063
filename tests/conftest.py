"""
Module: conftest.py
Description: Shared pytest fixtures for webhook emitter tests.

Provides reusable fixtures for the DynamoDB stores, sample
subscriptions and trigger requests, and a fully wired delivery job.
Uses moto for AWS service mocking and pytest-httpx for subscriber
endpoints.
"""

import os

# Settings are read at import time; these must be in place first
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ.setdefault("SUBSCRIPTIONS_TABLE_NAME", "test-subscriptions")
os.environ.setdefault("DELIVERY_RECORDS_TABLE_NAME", "test-delivery-records")
os.environ.setdefault("AUDIT_LOG_TABLE_NAME", "test-audit-log")
os.environ.setdefault(
    "DELIVERY_QUEUE_URL",
    "https://sqs.us-east-1.amazonaws.com/123456789012/test-deliveries"
)
os.environ.setdefault(
    "STAFF_EVENTS_TOPIC_ARN",
    "arn:aws:sns:us-east-1:123456789012:test-staff-events"
)

from unittest.mock import AsyncMock, MagicMock

import boto3
import pytest
from moto import mock_aws

from webhook_emitter.config.settings import Settings
from webhook_emitter.delivery.envelope import BodyFilterRegistry
from webhook_emitter.delivery.job import WebhookDeliveryJob
from webhook_emitter.delivery.publisher import EventPublisher
from webhook_emitter.delivery.push import PushDeliveryClient
from webhook_emitter.delivery.retry import RetryPolicy
from webhook_emitter.models.subscription import Subscription
from webhook_emitter.models.trigger import TriggerRequest
from webhook_emitter.sqs_queue.sqs import DeliveryScheduler
from webhook_emitter.storage.dynamodb import (
    SUBSCRIPTION_INDEX,
    AuditLogStore,
    DeliveryRecordStore,
    SubscriptionStore
)

PAYLOAD_URL = "https://hooks.example.com/webhooks/forum"


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Disables .env loading for predictable tests.
    """
    return Settings(
        _env_file=None,
        subscriptions_table_name="test-subscriptions",
        delivery_records_table_name="test-delivery-records",
        audit_log_table_name="test-audit-log",
        delivery_queue_url="https://sqs.us-east-1.amazonaws.com/123456789012/test-deliveries",
        staff_events_topic_arn="arn:aws:sns:us-east-1:123456789012:test-staff-events",
        base_url="https://forum.example.org/",
        log_level="DEBUG"
    )


@pytest.fixture
def aws():
    """Activate moto for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def dynamodb_tables(aws, test_settings):
    """
    Create mock DynamoDB tables with the production schemas.

    Returns a dict of boto3 Table resources keyed by role.
    """
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

    subscriptions = dynamodb.create_table(
        TableName=test_settings.subscriptions_table_name,
        KeySchema=[{'AttributeName': 'subscription_id', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'subscription_id', 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST'
    )

    records = dynamodb.create_table(
        TableName=test_settings.delivery_records_table_name,
        KeySchema=[{'AttributeName': 'delivery_id', 'KeyType': 'HASH'}],
        AttributeDefinitions=[
            {'AttributeName': 'delivery_id', 'AttributeType': 'S'},
            {'AttributeName': 'subscription_id', 'AttributeType': 'S'},
            {'AttributeName': 'created_at', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': SUBSCRIPTION_INDEX,
                'KeySchema': [
                    {'AttributeName': 'subscription_id', 'KeyType': 'HASH'},
                    {'AttributeName': 'created_at', 'KeyType': 'RANGE'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )

    audit = dynamodb.create_table(
        TableName=test_settings.audit_log_table_name,
        KeySchema=[{'AttributeName': 'entry_id', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'entry_id', 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST'
    )

    yield {"subscriptions": subscriptions, "records": records, "audit": audit}


@pytest.fixture
def subscription_store(test_settings, dynamodb_tables):
    return SubscriptionStore(table_name=test_settings.subscriptions_table_name)


@pytest.fixture
def record_store(test_settings, dynamodb_tables):
    return DeliveryRecordStore(table_name=test_settings.delivery_records_table_name)


@pytest.fixture
def audit_store(test_settings, dynamodb_tables):
    return AuditLogStore(table_name=test_settings.audit_log_table_name)


@pytest.fixture
def sample_subscription():
    """An active, unscoped, signed JSON subscription."""
    return Subscription(
        subscription_id="sub_forum42",
        payload_url=PAYLOAD_URL,
        secret="s3cret-signing-key",
        content_type="json",
        active=True
    )


@pytest.fixture
def sample_trigger(sample_subscription):
    """A typical post_created trigger request."""
    return TriggerRequest(
        subscription_id=sample_subscription.subscription_id,
        event_type="post_created",
        event_name="post_created",
        payload='{"id": 1001, "topic_id": 77, "raw": "Hello"}',
        group_ids=[3],
        category_id=7,
        tag_ids=[11]
    )


@pytest.fixture
def mock_scheduler():
    scheduler = AsyncMock(spec=DeliveryScheduler)
    scheduler.enqueue_in.return_value = "msg_retry"
    scheduler.defer.return_value = "msg_deferred"
    return scheduler


@pytest.fixture
def mock_publisher():
    return MagicMock(spec=EventPublisher)


@pytest.fixture
def body_filter_registry():
    return BodyFilterRegistry()


@pytest.fixture
def delivery_job(
    test_settings,
    subscription_store,
    record_store,
    audit_store,
    mock_scheduler,
    mock_publisher,
    body_filter_registry
):
    """
    Delivery job wired to moto-backed stores, a real HTTP client
    (intercepted by httpx_mock) and mocked scheduler/publisher.
    """
    return WebhookDeliveryJob(
        subscriptions=subscription_store,
        records=record_store,
        audit_log=audit_store,
        delivery_client=PushDeliveryClient(timeout_seconds=5),
        scheduler=mock_scheduler,
        publisher=mock_publisher,
        retry_policy=RetryPolicy(enabled=True, max_retry_count=4, backoff_base=5),
        base_url=test_settings.base_url,
        user_agent=test_settings.resolved_user_agent,
        system_actor=test_settings.system_actor,
        filters=body_filter_registry
    )
