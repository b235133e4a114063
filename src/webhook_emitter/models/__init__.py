"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains all data models used by the webhook emitter:
- Subscription: Configured delivery target with scope filters
- TriggerRequest: Input to one delivery attempt
- DeliveryRecord / Envelope / DeliveryResponse: Delivery attempt data
- AuditEntry: Append-only staff action history
"""

from .audit import AuditEntry
from .delivery import DeliveryRecord, DeliveryResponse, Envelope
from .subscription import ContentType, Subscription
from .trigger import PING_EVENT, TriggerRequest

__all__ = [
    "AuditEntry",
    "ContentType",
    "DeliveryRecord",
    "DeliveryResponse",
    "Envelope",
    "PING_EVENT",
    "Subscription",
    "TriggerRequest",
]
