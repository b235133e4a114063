"""
Module: subscription.py
Description: Webhook subscription model.

A subscription is a configured delivery target with an optional shared
secret and optional scope filters. The delivery pipeline only ever reads
subscriptions, except for flipping `active` off on deactivation.

Dependencies: pydantic, enum, typing
Author: Webhook Emitter Team
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentType(str, Enum):
    """Wire format advertised in the Content-Type header."""

    JSON = "json"
    FORM_URLENCODED = "form-urlencoded"

    @property
    def mime_type(self) -> str:
        if self is ContentType.FORM_URLENCODED:
            return "application/x-www-form-urlencoded"
        return "application/json"


class Subscription(BaseModel):
    """
    Subscription model representing one webhook endpoint.

    Attributes:
        subscription_id: Unique subscription identifier
        payload_url: Target URL receiving POST requests
        secret: Optional shared secret used to sign bodies
        content_type: Wire format (json or form-urlencoded)
        active: Whether deliveries are currently sent
        group_ids: Optional group scope filter
        category_ids: Optional category scope filter
        tag_ids: Optional tag scope filter
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True
    )

    subscription_id: str = Field(
        ...,
        min_length=1,
        description="Unique subscription identifier"
    )
    payload_url: str = Field(
        ...,
        description="Target URL for webhook deliveries"
    )
    secret: Optional[str] = Field(
        default=None,
        description="Shared secret for X-Event-Signature"
    )
    content_type: ContentType = Field(
        default=ContentType.JSON,
        description="Wire format of delivered bodies"
    )
    active: bool = Field(
        default=True,
        description="Whether the subscription receives deliveries"
    )
    group_ids: List[int] = Field(
        default_factory=list,
        description="Groups this subscription is scoped to"
    )
    category_ids: List[int] = Field(
        default_factory=list,
        description="Categories this subscription is scoped to"
    )
    tag_ids: List[int] = Field(
        default_factory=list,
        description="Tags this subscription is scoped to"
    )

    @field_validator('payload_url')
    @classmethod
    def validate_payload_url(cls, v: str) -> str:
        """Validate the target is an HTTP(S) URL."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("payload_url must be a valid HTTP/HTTPS URL")
        return v

    @field_validator('group_ids', 'category_ids', 'tag_ids', mode='before')
    @classmethod
    def validate_scope_ids(cls, v):
        """Treat a missing scope filter as unscoped."""
        if v is None:
            return []
        return [int(item) for item in v]

    @property
    def has_secret(self) -> bool:
        return bool(self.secret)
