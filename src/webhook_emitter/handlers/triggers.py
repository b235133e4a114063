"""
Module: triggers.py
Description: Endpoints for enqueueing and inspecting webhook deliveries.

Key Components:
- enqueue_trigger(): POST /triggers, queue a delivery job
- ping_subscription(): POST /subscriptions/{subscription_id}/ping
- list_deliveries(): GET /subscriptions/{subscription_id}/deliveries
- get_delivery(): GET /deliveries/{delivery_id}
- Dependency providers for the SQS scheduler and DynamoDB stores

Dependencies: FastAPI, typing, models, storage, sqs_queue, config, utils
Author: Webhook Emitter Team
"""

import json
from typing import List

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as status_codes

from webhook_emitter.config.settings import settings
from webhook_emitter.delivery.job import validate_arguments
from webhook_emitter.models.response import DeliveryRecordResponse, TriggerAcceptedResponse
from webhook_emitter.models.trigger import PING_EVENT, TriggerRequest
from webhook_emitter.sqs_queue.sqs import DeliveryScheduler, SQSClient
from webhook_emitter.storage.dynamodb import DeliveryRecordStore, SubscriptionStore
from webhook_emitter.utils.errors import InvalidParameters
from webhook_emitter.utils.logger import get_logger

router = APIRouter(tags=["deliveries"])
logger = get_logger(__name__)


def get_scheduler() -> DeliveryScheduler:
    """Dependency to get the delivery job scheduler."""
    return DeliveryScheduler(SQSClient(queue_url=settings.delivery_queue_url))


def get_subscription_store() -> SubscriptionStore:
    """Dependency to get the subscription store."""
    return SubscriptionStore(table_name=settings.subscriptions_table_name)


def get_record_store() -> DeliveryRecordStore:
    """Dependency to get the delivery record store."""
    return DeliveryRecordStore(table_name=settings.delivery_records_table_name)


async def _enqueue(scheduler: DeliveryScheduler, trigger: TriggerRequest) -> TriggerAcceptedResponse:
    try:
        message_id = await scheduler.enqueue(trigger)
    except ClientError as e:
        logger.error(
            "Failed to enqueue delivery job",
            subscription_id=trigger.subscription_id,
            event_type=trigger.event_type,
            error=str(e)
        )
        raise HTTPException(
            status_code=status_codes.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to enqueue delivery"
        )

    logger.info(
        "Delivery job enqueued",
        subscription_id=trigger.subscription_id,
        event_type=trigger.event_type,
        attempt_count=trigger.attempt_count,
        message_id=message_id
    )

    return TriggerAcceptedResponse(
        message_id=message_id,
        subscription_id=trigger.subscription_id,
        event_type=trigger.event_type,
        attempt_count=trigger.attempt_count
    )


@router.post(
    "/triggers",
    status_code=status_codes.HTTP_202_ACCEPTED,
    response_model=TriggerAcceptedResponse
)
async def enqueue_trigger(
    trigger: TriggerRequest,
    scheduler: DeliveryScheduler = Depends(get_scheduler)
) -> TriggerAcceptedResponse:
    """
    Queue a delivery job for one subscription.

    The job runs asynchronously; the response only confirms it was queued.

    Raises:
        HTTPException: 400 if a required field is missing or the payload is not JSON
        HTTPException: 500 if the job could not be queued

    Example:
        POST /triggers
        {
            "subscription_id": "sub_42",
            "event_type": "post_created",
            "payload": "{\\"id\\": 1}",
            "category_id": 7
        }

        Response (202 Accepted):
        {
            "message_id": "5fea7756-0ea4-451a-a703-a558b933e274",
            "subscription_id": "sub_42",
            "event_type": "post_created",
            "attempt_count": 0,
            "message": "Delivery queued"
        }
    """
    try:
        validate_arguments(trigger)
        if not trigger.is_ping:
            json.loads(trigger.payload)
    except InvalidParameters as e:
        raise HTTPException(status_code=status_codes.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError:
        raise HTTPException(
            status_code=status_codes.HTTP_400_BAD_REQUEST,
            detail="payload must be valid JSON"
        )

    return await _enqueue(scheduler, trigger)


@router.post(
    "/subscriptions/{subscription_id}/ping",
    status_code=status_codes.HTTP_202_ACCEPTED,
    response_model=TriggerAcceptedResponse
)
async def ping_subscription(
    subscription_id: str,
    subscriptions: SubscriptionStore = Depends(get_subscription_store),
    scheduler: DeliveryScheduler = Depends(get_scheduler)
) -> TriggerAcceptedResponse:
    """
    Queue a ping delivery to check a subscriber is reachable.

    Pings are delivered even to inactive or scoped subscriptions.

    Raises:
        HTTPException: 404 if the subscription does not exist
    """
    subscription = await subscriptions.get_subscription(subscription_id)
    if subscription is None:
        raise HTTPException(
            status_code=status_codes.HTTP_404_NOT_FOUND,
            detail=f"Subscription {subscription_id} not found"
        )

    return await _enqueue(
        scheduler,
        TriggerRequest(subscription_id=subscription_id, event_type=PING_EVENT)
    )


@router.get(
    "/subscriptions/{subscription_id}/deliveries",
    response_model=List[DeliveryRecordResponse]
)
async def list_deliveries(
    subscription_id: str,
    limit: int = 50,
    records: DeliveryRecordStore = Depends(get_record_store)
) -> List[DeliveryRecordResponse]:
    """
    List recent delivery records for a subscription, newest first.

    Raises:
        HTTPException: 400 if limit is outside 1-100
    """
    if limit <= 0 or limit > 100:
        raise HTTPException(
            status_code=status_codes.HTTP_400_BAD_REQUEST,
            detail="limit must be between 1 and 100"
        )

    found = await records.list_records(subscription_id, limit=limit)
    return [DeliveryRecordResponse.from_record(record) for record in found]


@router.get(
    "/deliveries/{delivery_id}",
    response_model=DeliveryRecordResponse
)
async def get_delivery(
    delivery_id: str,
    records: DeliveryRecordStore = Depends(get_record_store)
) -> DeliveryRecordResponse:
    """
    Fetch one delivery record.

    Raises:
        HTTPException: 404 if the record does not exist
    """
    record = await records.get_record(delivery_id)
    if record is None:
        raise HTTPException(
            status_code=status_codes.HTTP_404_NOT_FOUND,
            detail=f"Delivery {delivery_id} not found"
        )

    return DeliveryRecordResponse.from_record(record)
