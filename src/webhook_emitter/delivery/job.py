"""
Module: job.py
Description: The webhook delivery job.

Runs one delivery attempt end to end: validate the trigger request,
re-fetch the subscription, apply scope filters, persist a delivery
record, POST the signed envelope, publish a staff notification, then
act on the response (nothing, retry later, or deactivate).

Every decision is derived from the trigger request and the freshly
fetched subscription, so running the same job twice is safe apart
from producing a second delivery record.

Key Components:
- validate_arguments(): Required field checks
- WebhookDeliveryJob: Pipeline orchestration
- WebhookDeliveryJob.from_settings(): Wiring to DynamoDB, SQS, SNS and CloudWatch

Dependencies: storage, sqs_queue, delivery, utils
Author: Webhook Emitter Team
"""

from typing import Optional

from webhook_emitter.delivery.deactivation import deactivate_subscription
from webhook_emitter.delivery.envelope import BodyFilterRegistry, body_filters, build_body, build_envelope
from webhook_emitter.delivery.publisher import EventPublisher
from webhook_emitter.delivery.push import PushDeliveryClient
from webhook_emitter.delivery.retry import DeliveryOutcome, RetryPolicy, classify_response
from webhook_emitter.models.delivery import DeliveryResponse
from webhook_emitter.models.subscription import Subscription
from webhook_emitter.models.trigger import TriggerRequest
from webhook_emitter.sqs_queue.sqs import DeliveryScheduler, SQSClient
from webhook_emitter.storage.dynamodb import AuditLogStore, DeliveryRecordStore, SubscriptionStore
from webhook_emitter.utils import metrics
from webhook_emitter.utils.errors import InvalidParameters
from webhook_emitter.utils.filters import evaluate_scope
from webhook_emitter.utils.logger import get_logger
from webhook_emitter.utils.metrics import MetricsClient

logger = get_logger(__name__)


def validate_arguments(trigger: TriggerRequest) -> None:
    """
    Check the fields a delivery job cannot run without.

    Raises:
        InvalidParameters: Naming the first missing field
    """
    if not trigger.subscription_id:
        raise InvalidParameters("subscription_id")
    if not trigger.event_type:
        raise InvalidParameters("event_type")
    if not trigger.is_ping and not trigger.payload:
        raise InvalidParameters("payload")


class WebhookDeliveryJob:
    """
    Delivery pipeline for a single trigger request.

    Collaborators are injected so the pipeline can be exercised
    without AWS or a live subscriber.

    Example:
        >>> job = WebhookDeliveryJob.from_settings(settings)
        >>> outcome = await job.execute(TriggerRequest(subscription_id="sub_1", event_type="ping"))
    """

    def __init__(
        self,
        subscriptions: SubscriptionStore,
        records: DeliveryRecordStore,
        audit_log: AuditLogStore,
        delivery_client: PushDeliveryClient,
        scheduler: DeliveryScheduler,
        publisher: EventPublisher,
        retry_policy: RetryPolicy,
        *,
        base_url: str,
        user_agent: str,
        system_actor: str = "system",
        metrics_client: Optional[MetricsClient] = None,
        filters: BodyFilterRegistry = body_filters
    ):
        self.subscriptions = subscriptions
        self.records = records
        self.audit_log = audit_log
        self.delivery_client = delivery_client
        self.scheduler = scheduler
        self.publisher = publisher
        self.retry_policy = retry_policy
        self.base_url = base_url
        self.user_agent = user_agent
        self.system_actor = system_actor
        self.metrics_client = metrics_client
        self.filters = filters

    @classmethod
    def from_settings(cls, settings) -> "WebhookDeliveryJob":
        return cls(
            subscriptions=SubscriptionStore(settings.subscriptions_table_name),
            records=DeliveryRecordStore(settings.delivery_records_table_name),
            audit_log=AuditLogStore(settings.audit_log_table_name),
            delivery_client=PushDeliveryClient(
                timeout_seconds=settings.delivery_timeout,
                max_response_body_length=settings.max_response_body_length
            ),
            scheduler=DeliveryScheduler(SQSClient(settings.delivery_queue_url)),
            publisher=EventPublisher(
                settings.staff_events_topic_arn,
                audience=settings.staff_audience
            ),
            retry_policy=RetryPolicy.from_settings(settings),
            base_url=settings.base_url,
            user_agent=settings.resolved_user_agent,
            system_actor=settings.system_actor,
            metrics_client=MetricsClient()
        )

    async def execute(self, trigger: TriggerRequest) -> Optional[DeliveryOutcome]:
        """
        Run one delivery attempt.

        Args:
            trigger: Trigger request for this attempt

        Returns:
            The attempt's classification, or None when nothing was sent
            (subscription deleted, inactive or out of scope)

        Raises:
            InvalidParameters: If a required field is missing
            MalformedPayload: If the payload is not valid JSON
            ClientError: If a storage or queue operation fails
        """
        validate_arguments(trigger)

        log = logger.bind(
            subscription_id=trigger.subscription_id,
            event_type=trigger.event_type,
            attempt_count=trigger.attempt_count
        )

        subscription = await self.subscriptions.get_subscription(trigger.subscription_id)
        if subscription is None:
            log.info("Subscription no longer exists, skipping delivery", reason="subscription_deleted")
            return None

        decision = evaluate_scope(subscription, trigger)
        if not decision.deliver:
            log.info("Delivery skipped", reason=decision.reason)
            return None

        return await self._send(subscription, trigger, log)

    async def _send(self, subscription: Subscription, trigger: TriggerRequest, log) -> DeliveryOutcome:
        body = build_body(trigger, self.filters)
        record = await self.records.create_record(
            subscription.subscription_id,
            body,
            event_type=trigger.event_type
        )
        log = log.bind(delivery_id=record.delivery_id)

        envelope = build_envelope(
            subscription,
            trigger,
            body,
            record.delivery_id,
            base_url=self.base_url,
            user_agent=self.user_agent
        )

        # Staff see every persisted record, whatever happens to the POST
        try:
            response = await self.delivery_client.deliver(subscription.payload_url, envelope)
            await self.records.record_attempt(record.delivery_id, envelope.headers, response)
        finally:
            self.publisher.publish_delivery(
                subscription.subscription_id,
                record.delivery_id,
                trigger.event_type
            )

        outcome = classify_response(response)
        log.info(
            "Delivery attempt classified",
            outcome=outcome.value,
            status_code=response.status if response else None
        )

        await self._process_outcome(outcome, subscription, trigger, response, log)
        return outcome

    async def _process_outcome(
        self,
        outcome: DeliveryOutcome,
        subscription: Subscription,
        trigger: TriggerRequest,
        response: Optional[DeliveryResponse],
        log
    ) -> None:
        if outcome is DeliveryOutcome.INCONCLUSIVE:
            return

        if outcome is DeliveryOutcome.SUCCESS:
            self._count(metrics.DELIVERED, trigger)
            return

        self._count(metrics.DELIVERY_FAILED, trigger)

        if outcome is DeliveryOutcome.PERMANENT_FAILURE:
            if self.retry_policy.should_deactivate(trigger):
                await deactivate_subscription(
                    subscription.subscription_id,
                    response.status,
                    subscriptions=self.subscriptions,
                    audit_log=self.audit_log,
                    actor=self.system_actor
                )
                self._count(metrics.DEACTIVATED, trigger)
            return

        await self._retry(trigger, log)

    async def _retry(self, trigger: TriggerRequest, log) -> None:
        if not self.retry_policy.enabled:
            log.info("Retries disabled, dropping failed delivery")
            return

        scheduled = self.retry_policy.next_retry(trigger)
        if scheduled is None:
            log.warning(
                "Retry budget exhausted, dropping failed delivery",
                max_retry_count=self.retry_policy.max_retry_count
            )
            return

        message_id = await self.scheduler.enqueue_in(scheduled.delay_minutes, scheduled.trigger)
        self._count(metrics.RETRY_SCHEDULED, trigger)

        log.info(
            "Delivery retry scheduled",
            next_attempt_count=scheduled.trigger.attempt_count,
            delay_minutes=scheduled.delay_minutes,
            message_id=message_id
        )

    def _count(self, metric_name: str, trigger: TriggerRequest) -> None:
        if self.metrics_client is not None:
            self.metrics_client.count_delivery_outcome(metric_name, trigger.event_type)
