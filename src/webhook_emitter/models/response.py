"""
Module: response.py
Description: API response models for the webhook emitter.

Defines response models for the HTTP endpoints that enqueue delivery
jobs and expose delivery records.

Key Components:
- TriggerAcceptedResponse: Returned when a delivery job is queued
- DeliveryRecordResponse: One delivery record as seen by operators

Dependencies: pydantic, datetime, typing
Author: Webhook Emitter Team
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from webhook_emitter.models.delivery import DeliveryRecord


class TriggerAcceptedResponse(BaseModel):
    """
    Response model for an accepted delivery job.

    Attributes:
        message_id: SQS message identifier of the queued job
        subscription_id: Target subscription
        event_type: Event type queued for delivery
        attempt_count: Attempt count carried by the job
        message: Human-readable status message
    """

    message_id: str = Field(..., description="Queue message identifier")
    subscription_id: str = Field(..., description="Target subscription identifier")
    event_type: str = Field(..., description="Queued event type")
    attempt_count: int = Field(default=0, description="Attempt count carried by the job")
    message: str = Field(default="Delivery queued", description="Status message")


class DeliveryRecordResponse(BaseModel):
    """Delivery record representation returned by the API."""

    delivery_id: str
    subscription_id: str
    event_type: Optional[str] = None
    payload: str
    headers: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    status: Optional[int] = None
    response_body: Optional[str] = None
    duration_ms: Optional[int] = None

    @classmethod
    def from_record(cls, record: DeliveryRecord) -> "DeliveryRecordResponse":
        return cls(
            delivery_id=record.delivery_id,
            subscription_id=record.subscription_id,
            event_type=record.event_type,
            payload=record.payload,
            headers=record.headers,
            created_at=record.created_at,
            status=record.status,
            response_body=record.response_body,
            duration_ms=record.duration_ms
        )
