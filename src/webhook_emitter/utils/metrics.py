"""
Module: metrics.py
Description: CloudWatch custom metrics publishing.

Publishes delivery pipeline metrics to CloudWatch for monitoring
delivery success, retries and subscription deactivations.

Key Components:
- MetricsClient: CloudWatch metrics client
- put_metric(): Publish individual metrics
- count_delivery_outcome(): Count one pipeline outcome per event type
- Graceful error handling for metrics failures

Dependencies: boto3, typing, logger
Author: Webhook Emitter Team
"""

from typing import Optional

import boto3

from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)

DELIVERED = "WebhookDelivered"
DELIVERY_FAILED = "WebhookDeliveryFailed"
RETRY_SCHEDULED = "WebhookRetryScheduled"
DEACTIVATED = "WebhookDeactivated"


class MetricsClient:
    """CloudWatch metrics client."""

    def __init__(self, namespace: str = "WebhookEmitter"):
        """
        Initialize metrics client.

        Args:
            namespace: CloudWatch metrics namespace
        """
        self.namespace = namespace
        self.cloudwatch = boto3.client('cloudwatch')

        logger.info(
            "Metrics client initialized",
            namespace=namespace
        )

    def put_metric(
        self,
        metric_name: str,
        value: float,
        unit: str = 'Count',
        dimensions: Optional[dict] = None
    ) -> None:
        """
        Publish a metric to CloudWatch.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Metric unit (Count, Seconds, etc.)
            dimensions: Optional metric dimensions
        """
        try:
            metric_data = {
                'MetricName': metric_name,
                'Value': value,
                'Unit': unit
            }

            if dimensions:
                metric_data['Dimensions'] = [
                    {'Name': k, 'Value': v}
                    for k, v in dimensions.items()
                ]

            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=[metric_data]
            )

            logger.debug(
                "Metric published to CloudWatch",
                metric_name=metric_name,
                value=value,
                unit=unit,
                dimensions=dimensions,
                namespace=self.namespace
            )

        except Exception as e:
            # Don't fail the delivery job if metrics fail
            logger.warning(
                "Failed to publish metric",
                metric_name=metric_name,
                value=value,
                error=str(e),
                namespace=self.namespace
            )

    def count_delivery_outcome(self, metric_name: str, event_type: str) -> None:
        self.put_metric(
            metric_name=metric_name,
            value=1.0,
            dimensions={"EventType": event_type}
        )
