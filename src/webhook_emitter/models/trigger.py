"""
Module: trigger.py
Description: Trigger request model for one delivery attempt.

A TriggerRequest describes one event occurrence to potentially deliver
to one subscription. It is immutable: the only retry state is
`attempt_count`, and re-scheduling carries a copy with the count
incremented.

Dependencies: pydantic, json, typing
Author: Webhook Emitter Team
"""

import json
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PING_EVENT = "ping"


class TriggerRequest(BaseModel):
    """
    Input to one invocation of the delivery pipeline.

    Required fields are declared Optional so that a missing one is
    reported as InvalidParameters(field) by
    delivery.job.validate_arguments instead of a schema error.

    Attributes:
        subscription_id: Subscription to deliver to
        event_type: Event type, or 'ping' for a liveness check
        event_name: Optional human readable event name
        payload: Raw serialized JSON payload (required unless ping)
        group_ids: Groups the event belongs to
        category_id: Category the event belongs to
        tag_ids: Tags attached to the event
        attempt_count: Number of retries already scheduled
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True
    )

    subscription_id: Optional[str] = Field(
        default=None,
        description="Subscription identifier"
    )
    event_type: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Event type identifier"
    )
    event_name: Optional[str] = Field(
        default=None,
        description="Optional event display name"
    )
    payload: Optional[str] = Field(
        default=None,
        description="Raw serialized JSON payload"
    )
    group_ids: Optional[List[int]] = Field(
        default=None,
        description="Event scope: group identifiers"
    )
    category_id: Optional[int] = Field(
        default=None,
        description="Event scope: category identifier"
    )
    tag_ids: Optional[List[int]] = Field(
        default=None,
        description="Event scope: tag identifiers"
    )
    attempt_count: int = Field(
        default=0,
        ge=0,
        description="Retries already scheduled for this logical delivery"
    )

    @field_validator('payload', mode='before')
    @classmethod
    def serialize_structured_payload(cls, v: Any) -> Any:
        """Accept already-parsed payloads by serializing them."""
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return v

    @property
    def is_ping(self) -> bool:
        return self.event_type == PING_EVENT

    def next_attempt(self) -> "TriggerRequest":
        """Return a copy with attempt_count incremented; nothing else changes."""
        return self.model_copy(update={"attempt_count": self.attempt_count + 1})
