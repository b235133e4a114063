"""
Module: delivery.py
Description: Delivery attempt models.

Defines the persisted DeliveryRecord audit entry, the ephemeral
Envelope handed to the transport, and the DeliveryResponse the
transport returns when (and only when) an HTTP status was obtained.

Key Components:
- DeliveryRecord: Append-only record of one attempt
- Envelope: Headers and body for one POST
- DeliveryResponse: Observed status, body and headers
- generate_delivery_id(): Record identifier factory

Dependencies: pydantic, datetime, uuid, typing
Author: Webhook Emitter Team
"""

from datetime import datetime
from typing import Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def generate_delivery_id() -> str:
    return f"dlv_{uuid4().hex[:12]}"


class DeliveryRecord(BaseModel):
    """
    Audit entry for one delivery attempt.

    A record is created before dispatch with the exact body, and is
    later completed with the observed response. Retries always create
    a new record.

    Attributes:
        delivery_id: Unique record identifier, sent as X-Event-Id
        subscription_id: Owning subscription
        event_type: Event type delivered
        payload: Serialized body that was (or would be) sent
        headers: Request headers sent with the body
        created_at: When the record was created
        status: HTTP status once the transport returned one
        response_body: Response body (truncated)
        response_headers: Response headers
        duration_ms: Round trip time of the POST
    """

    model_config = ConfigDict(validate_assignment=True)

    delivery_id: str = Field(
        ...,
        pattern=r"^dlv_[a-z0-9]{12}$",
        description="Unique delivery record identifier"
    )
    subscription_id: str = Field(..., description="Owning subscription identifier")
    event_type: Optional[str] = Field(default=None, description="Delivered event type")
    payload: str = Field(..., description="Serialized request body")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    created_at: datetime = Field(..., description="Record creation timestamp")
    status: Optional[int] = Field(default=None, description="Observed HTTP status")
    response_body: Optional[str] = Field(default=None, description="Observed response body")
    response_headers: Optional[Dict[str, str]] = Field(
        default=None,
        description="Observed response headers"
    )
    duration_ms: Optional[int] = Field(default=None, ge=0, description="Request duration")


class Envelope(BaseModel):
    """Headers and serialized body for one delivery POST."""

    model_config = ConfigDict(frozen=True)

    headers: Dict[str, str]
    body: str

    @property
    def content(self) -> bytes:
        return self.body.encode("utf-8")


class DeliveryResponse(BaseModel):
    """
    Outcome of a transport call that produced an HTTP status.

    Transport failures are represented by the absence of a response
    (None), never by a DeliveryResponse.
    """

    model_config = ConfigDict(frozen=True)

    status: int = Field(..., ge=100, le=999)
    body: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    duration_ms: int = Field(default=0, ge=0)
