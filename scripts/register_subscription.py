#!/usr/bin/env python3
"""
Script: register_subscription.py
Description: Register a webhook subscription for local testing.

Generates a signing secret, stores the subscription in the
subscriptions DynamoDB table, and optionally queues a ping delivery.
Subscription management itself lives outside this service; this
script only exists to seed environments.

Usage:
    python scripts/register_subscription.py https://example.com/hook [--form] [--group 3 --group 4] [--ping]

Security Note:
    The secret is shown only once. Store it securely!
    This script requires AWS credentials and access to DynamoDB and SQS.
"""

import argparse
import asyncio
import secrets
import sys
from uuid import uuid4

from botocore.exceptions import ClientError

from webhook_emitter.config.settings import settings
from webhook_emitter.models.subscription import ContentType, Subscription
from webhook_emitter.models.trigger import PING_EVENT, TriggerRequest
from webhook_emitter.sqs_queue.sqs import DeliveryScheduler, SQSClient
from webhook_emitter.storage.dynamodb import SubscriptionStore
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)


def generate_secret() -> str:
    return f"whsec_{secrets.token_urlsafe(24)}"


async def register(args: argparse.Namespace) -> Subscription:
    subscription = Subscription(
        subscription_id=f"sub_{uuid4().hex[:12]}",
        payload_url=args.url,
        secret=None if args.no_secret else generate_secret(),
        content_type=ContentType.FORM_URLENCODED if args.form else ContentType.JSON,
        group_ids=args.group,
        category_ids=args.category,
        tag_ids=args.tag
    )

    await SubscriptionStore(settings.subscriptions_table_name).put_subscription(subscription)

    logger.info(
        "Subscription registered",
        subscription_id=subscription.subscription_id,
        payload_url=subscription.payload_url,
        table_name=settings.subscriptions_table_name
    )

    if args.ping:
        scheduler = DeliveryScheduler(SQSClient(settings.delivery_queue_url))
        await scheduler.enqueue(
            TriggerRequest(subscription_id=subscription.subscription_id, event_type=PING_EVENT)
        )

    return subscription


def main():
    parser = argparse.ArgumentParser(description="Register a webhook subscription")
    parser.add_argument("url", help="Payload URL receiving deliveries")
    parser.add_argument("--form", action="store_true", help="Advertise form-urlencoded content")
    parser.add_argument("--no-secret", action="store_true", help="Do not sign deliveries")
    parser.add_argument("--group", type=int, action="append", default=[], help="Group scope id")
    parser.add_argument("--category", type=int, action="append", default=[], help="Category scope id")
    parser.add_argument("--tag", type=int, action="append", default=[], help="Tag scope id")
    parser.add_argument("--ping", action="store_true", help="Queue a ping delivery afterwards")

    args = parser.parse_args()

    try:
        subscription = asyncio.run(register(args))
    except (ClientError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print("=" * 60)
    print(f"Subscription: {subscription.subscription_id}")
    print(f"Payload URL:  {subscription.payload_url}")
    if subscription.secret:
        print(f"Secret:       {subscription.secret}")
        print("Store the secret now; it will not be shown again.")
    print("=" * 60)


if __name__ == "__main__":
    main()
