"""
Module: envelope.py
Description: Webhook body and header construction.

Builds the exact bytes sent to a subscriber and the header set that
goes with them, including the HMAC-SHA256 signature when the
subscription has a secret.

Key Components:
- BodyFilterRegistry: Ordered body transformations applied before serialization
- build_body(): Single-key JSON body for an event or a ping
- sign_body(): X-Event-Signature value
- build_headers() / build_envelope(): Final header set for a delivery record

Dependencies: hmac, hashlib, json, urllib
Author: Webhook Emitter Team
"""

import hmac
import json
from hashlib import sha256
from typing import Callable, Dict, List, Mapping
from urllib.parse import urlsplit

from webhook_emitter.models.delivery import Envelope
from webhook_emitter.models.subscription import Subscription
from webhook_emitter.models.trigger import TriggerRequest
from webhook_emitter.utils.errors import MalformedPayload

BodyFilter = Callable[[Mapping], Mapping]


class BodyFilterRegistry:
    """
    Ordered list of body transformations.

    Each filter receives the assembled body mapping and returns the
    mapping to serialize. Filters run in registration order.

    Example:
        >>> @body_filters.register
        ... def add_instance(body):
        ...     return {**body, "instance": "forum-1"}
    """

    def __init__(self):
        self._filters: List[BodyFilter] = []

    def register(self, body_filter: BodyFilter) -> BodyFilter:
        self._filters.append(body_filter)
        return body_filter

    def unregister(self, body_filter: BodyFilter) -> None:
        self._filters.remove(body_filter)

    def apply(self, body: Mapping) -> Mapping:
        for body_filter in self._filters:
            body = body_filter(body)
            if not isinstance(body, Mapping):
                raise TypeError(
                    f"Body filter {getattr(body_filter, '__name__', body_filter)!r} "
                    f"must return a mapping, got {type(body).__name__}"
                )
        return body

    def __len__(self) -> int:
        return len(self._filters)


# Process-wide registry consulted by default
body_filters = BodyFilterRegistry()


def build_body(trigger: TriggerRequest, filters: BodyFilterRegistry = body_filters) -> str:
    """
    Build the serialized request body for a delivery attempt.

    Args:
        trigger: Trigger request being delivered
        filters: Body filters applied before serialization

    Returns:
        Compact JSON string, e.g. '{"ping":"OK"}'

    Raises:
        MalformedPayload: If the raw payload is not valid JSON
    """
    if trigger.is_ping:
        body = {"ping": "OK"}
    else:
        try:
            parsed = json.loads(trigger.payload)
        except (TypeError, ValueError) as e:
            raise MalformedPayload(trigger.event_type, str(e)) from e
        body = {trigger.event_type: parsed}

    body = filters.apply(body)
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def sign_body(secret: str, body: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), sha256).hexdigest()
    return f"sha256={digest}"


def build_headers(
    subscription: Subscription,
    trigger: TriggerRequest,
    body: str,
    delivery_id: str,
    *,
    base_url: str,
    user_agent: str
) -> Dict[str, str]:
    """
    Build the header set for one delivery.

    X-Event-Name is only sent when the trigger carries an event name,
    and X-Event-Signature only when the subscription has a secret.

    Args:
        subscription: Target subscription
        trigger: Trigger request being delivered
        body: Serialized body from build_body()
        delivery_id: Persisted delivery record id
        base_url: Base URL of this installation
        user_agent: Product user agent string

    Returns:
        Header mapping ready for the transport
    """
    host = urlsplit(subscription.payload_url.strip()).hostname

    headers = {
        "Accept": "*/*",
        "Connection": "close",
        "Content-Length": str(len(body.encode("utf-8"))),
        "Content-Type": subscription.content_type.mime_type,
        "Host": host,
        "User-Agent": user_agent,
        "X-Event-Source-Instance": base_url,
        "X-Event-Id": delivery_id,
        "X-Event-Type": trigger.event_type,
    }

    if trigger.event_name:
        headers["X-Event-Name"] = trigger.event_name

    if subscription.has_secret:
        headers["X-Event-Signature"] = sign_body(subscription.secret, body)

    return headers


def build_envelope(
    subscription: Subscription,
    trigger: TriggerRequest,
    body: str,
    delivery_id: str,
    *,
    base_url: str,
    user_agent: str
) -> Envelope:
    headers = build_headers(
        subscription,
        trigger,
        body,
        delivery_id,
        base_url=base_url,
        user_agent=user_agent
    )
    return Envelope(headers=headers, body=body)
