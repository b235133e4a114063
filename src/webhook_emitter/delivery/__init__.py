"""
Package: delivery
Description: Webhook delivery pipeline.

Scope filtering, envelope building, HTTP push, response
classification, retry scheduling, deactivation and staff
notification, orchestrated by WebhookDeliveryJob and driven
from SQS by the worker handler.
"""
