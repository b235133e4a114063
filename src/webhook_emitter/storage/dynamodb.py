"""
Module: dynamodb.py
Description: DynamoDB stores for subscriptions, delivery records and audit history.

Provides async operations used by the delivery pipeline with proper
error handling and logging. Subscriptions are only read and
deactivated here; delivery records and audit entries are append-only.

Key Components:
- SubscriptionStore: get_subscription(), deactivate()
- DeliveryRecordStore: create_record(), record_attempt(), get_record(), list_records()
- AuditLogStore: append(), list_for_subject()
- Error handling: ClientError logged with AWS error code and re-raised

Dependencies: boto3, botocore, datetime, typing
Author: Webhook Emitter Team
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from webhook_emitter.models.audit import AuditEntry
from webhook_emitter.models.delivery import DeliveryRecord, DeliveryResponse, generate_delivery_id
from webhook_emitter.models.subscription import Subscription
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)

SUBSCRIPTION_INDEX = "SubscriptionIndex"


def _plain(value: Any) -> Any:
    """Convert DynamoDB Decimals back to ints/floats, recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def _error_fields(e: ClientError) -> Dict[str, str]:
    return {
        "error_code": e.response['Error']['Code'],
        "error_message": e.response['Error']['Message']
    }


class _DynamoDBTable:
    """Shared table handle for the stores below."""

    def __init__(self, table_name: str):
        """
        Initialize the table handle.

        Args:
            table_name: Name of the DynamoDB table

        Raises:
            ValueError: If table_name is empty or invalid
        """
        if not table_name or not isinstance(table_name, str):
            raise ValueError("table_name must be a non-empty string")

        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

        logger.debug(
            "DynamoDB table initialized",
            store=type(self).__name__,
            table_name=table_name
        )


class SubscriptionStore(_DynamoDBTable):
    """
    Read access to webhook subscriptions.

    Example:
        >>> store = SubscriptionStore(table_name="webhook-subscriptions")
        >>> subscription = await store.get_subscription("sub_123")
    """

    async def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        """
        Retrieve a subscription by ID.

        Args:
            subscription_id: Unique subscription identifier

        Returns:
            Subscription if found, None otherwise

        Raises:
            ClientError: If DynamoDB operation fails
            ValueError: If subscription_id is invalid
        """
        if not subscription_id or not isinstance(subscription_id, str):
            raise ValueError("subscription_id must be a non-empty string")

        try:
            response = self.table.get_item(
                Key={'subscription_id': subscription_id},
                ConsistentRead=True
            )

        except ClientError as e:
            logger.error(
                "Failed to retrieve subscription from DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        if 'Item' not in response:
            logger.info(
                "Subscription not found in DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name
            )
            return None

        return Subscription(**_plain(response['Item']))

    async def put_subscription(self, subscription: Subscription) -> None:
        """Store a subscription (used by provisioning scripts and tests)."""
        item = subscription.model_dump(mode='json')
        item = {k: v for k, v in item.items() if v is not None}

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(
                "Failed to store subscription in DynamoDB",
                subscription_id=subscription.subscription_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

    async def deactivate(self, subscription_id: str) -> bool:
        """
        Set a subscription's active flag to false.

        Setting an already inactive subscription inactive is harmless.
        A subscription deleted in the meantime is left absent.

        Args:
            subscription_id: Subscription to deactivate

        Returns:
            True if the subscription existed and is now inactive

        Raises:
            ClientError: If DynamoDB operation fails
        """
        try:
            self.table.update_item(
                Key={'subscription_id': subscription_id},
                UpdateExpression='SET active = :inactive',
                ConditionExpression='attribute_exists(subscription_id)',
                ExpressionAttributeValues={':inactive': False}
            )

        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                logger.info(
                    "Subscription vanished before deactivation",
                    subscription_id=subscription_id,
                    table_name=self.table_name
                )
                return False

            logger.error(
                "Failed to deactivate subscription in DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        logger.info(
            "Subscription deactivated",
            subscription_id=subscription_id,
            table_name=self.table_name
        )
        return True


class DeliveryRecordStore(_DynamoDBTable):
    """
    Append-only delivery records.

    Records are keyed by delivery_id and indexed by subscription_id and
    created_at through the SubscriptionIndex GSI.
    """

    async def create_record(
        self,
        subscription_id: str,
        payload: str,
        event_type: Optional[str] = None
    ) -> DeliveryRecord:
        """
        Create a new delivery record capturing the body about to be sent.

        Args:
            subscription_id: Owning subscription
            payload: Serialized request body
            event_type: Event type being delivered

        Returns:
            The persisted DeliveryRecord

        Raises:
            ClientError: If DynamoDB operation fails
        """
        record = DeliveryRecord(
            delivery_id=generate_delivery_id(),
            subscription_id=subscription_id,
            event_type=event_type,
            payload=payload,
            created_at=datetime.now(timezone.utc)
        )

        item = record.model_dump(mode='json')
        item = {k: v for k, v in item.items() if v is not None}

        try:
            self.table.put_item(
                Item=item,
                ConditionExpression='attribute_not_exists(delivery_id)'
            )

        except ClientError as e:
            logger.error(
                "Failed to store delivery record in DynamoDB",
                subscription_id=subscription_id,
                delivery_id=record.delivery_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        logger.info(
            "Delivery record created",
            subscription_id=subscription_id,
            delivery_id=record.delivery_id,
            event_type=event_type,
            table_name=self.table_name
        )

        return record

    async def record_attempt(
        self,
        delivery_id: str,
        headers: Dict[str, str],
        response: Optional[DeliveryResponse] = None
    ) -> None:
        """
        Attach the sent headers and, when a status was obtained, the response.

        Args:
            delivery_id: Record to complete
            headers: Request headers sent
            response: Transport response, None when no status was obtained

        Raises:
            ClientError: If DynamoDB operation fails
        """
        update = ['headers = :headers']
        names = {}
        values: Dict[str, Any] = {':headers': headers}

        if response is not None:
            update += [
                '#status = :status',
                'response_body = :response_body',
                'response_headers = :response_headers',
                'duration_ms = :duration_ms'
            ]
            names['#status'] = 'status'
            values.update({
                ':status': response.status,
                ':response_body': response.body,
                ':response_headers': response.headers,
                ':duration_ms': response.duration_ms
            })

        kwargs = {
            'Key': {'delivery_id': delivery_id},
            'UpdateExpression': 'SET ' + ', '.join(update),
            'ExpressionAttributeValues': values
        }
        if names:
            kwargs['ExpressionAttributeNames'] = names

        try:
            self.table.update_item(**kwargs)

        except ClientError as e:
            logger.error(
                "Failed to update delivery record in DynamoDB",
                delivery_id=delivery_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        logger.debug(
            "Delivery record updated",
            delivery_id=delivery_id,
            status_code=response.status if response else None,
            table_name=self.table_name
        )

    async def get_record(self, delivery_id: str) -> Optional[DeliveryRecord]:
        if not delivery_id or not isinstance(delivery_id, str):
            raise ValueError("delivery_id must be a non-empty string")

        try:
            response = self.table.get_item(Key={'delivery_id': delivery_id})
        except ClientError as e:
            logger.error(
                "Failed to retrieve delivery record from DynamoDB",
                delivery_id=delivery_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        if 'Item' not in response:
            return None
        return self._item_to_record(response['Item'])

    async def list_records(self, subscription_id: str, limit: int = 50) -> List[DeliveryRecord]:
        """
        List a subscription's delivery records, newest first.

        Args:
            subscription_id: Owning subscription
            limit: Maximum number of records to return (1-100)

        Returns:
            List of DeliveryRecord sorted by created_at descending

        Raises:
            ClientError: If DynamoDB operation fails
            ValueError: If limit is out of range
        """
        if limit <= 0 or limit > 100:
            raise ValueError("limit must be between 1 and 100")

        try:
            response = self.table.query(
                IndexName=SUBSCRIPTION_INDEX,
                KeyConditionExpression=Key('subscription_id').eq(subscription_id),
                ScanIndexForward=False,
                Limit=limit
            )

        except ClientError as e:
            logger.error(
                "Failed to list delivery records from DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        records = [self._item_to_record(item) for item in response.get('Items', [])]

        logger.info(
            "Delivery records listed",
            subscription_id=subscription_id,
            count=len(records),
            limit=limit,
            table_name=self.table_name
        )

        return records

    @staticmethod
    def _item_to_record(item: Dict[str, Any]) -> DeliveryRecord:
        item = _plain(item)
        item['created_at'] = datetime.fromisoformat(item['created_at'].replace('Z', '+00:00'))
        return DeliveryRecord(**item)


class AuditLogStore(_DynamoDBTable):
    """Append-only staff action history."""

    async def append(self, entry: AuditEntry) -> None:
        """
        Append an audit entry.

        Raises:
            ClientError: If DynamoDB operation fails
        """
        item = entry.model_dump(mode='json')
        item = {k: v for k, v in item.items() if v is not None}

        try:
            self.table.put_item(
                Item=item,
                ConditionExpression='attribute_not_exists(entry_id)'
            )

        except ClientError as e:
            logger.error(
                "Failed to append audit entry in DynamoDB",
                entry_id=entry.entry_id,
                action=entry.action,
                subject=entry.subject,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        logger.info(
            "Audit entry appended",
            entry_id=entry.entry_id,
            action=entry.action,
            acting_user=entry.acting_user,
            subject=entry.subject,
            status_code=entry.status_code,
            table_name=self.table_name
        )

    async def list_for_subject(self, subject: str) -> List[AuditEntry]:
        """List every audit entry for a subject, oldest first, across all scan pages."""
        items = []
        kwargs: Dict[str, Any] = {'FilterExpression': Attr('subject').eq(subject)}

        try:
            response = self.table.scan(**kwargs)
            items.extend(response.get('Items', []))

            # Continue scanning if there are more items
            while response.get('LastEvaluatedKey'):
                response = self.table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey'],
                    **kwargs
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(
                "Failed to scan audit entries in DynamoDB",
                subject=subject,
                table_name=self.table_name,
                **_error_fields(e)
            )
            raise

        entries = [AuditEntry(**_plain(item)) for item in items]
        entries.sort(key=lambda entry: entry.created_at)
        return entries
