"""
Module: filters.py
Description: Subscription scope filtering for delivery jobs.

Decides whether a subscription should receive a given event instance,
based on the subscription's active flag and its optional group,
category and tag filters. An empty filter means "unscoped".

Key Components:
- ScopeDecision: Outcome of the check, with the reason for a skip
- group_filter_matches() / category_filter_matches() / tag_filter_matches()
- evaluate_scope(): Applies every rule in order

Author: Webhook Emitter Team
"""

from typing import Iterable, NamedTuple, Optional

from webhook_emitter.models.subscription import Subscription
from webhook_emitter.models.trigger import TriggerRequest


class ScopeDecision(NamedTuple):
    deliver: bool
    reason: Optional[str] = None


DELIVER = ScopeDecision(True)


def _intersects(configured: Iterable[int], supplied: Optional[Iterable[int]]) -> bool:
    if not supplied:
        return False
    return bool(set(configured) & set(supplied))


def group_filter_matches(subscription: Subscription, group_ids: Optional[Iterable[int]]) -> bool:
    """True when the subscription is unscoped by group or shares a group with the event."""
    if not subscription.group_ids:
        return True
    return _intersects(subscription.group_ids, group_ids)


def category_filter_matches(subscription: Subscription, category_id: Optional[int]) -> bool:
    """True when the subscription is unscoped by category or lists the event's category."""
    if not subscription.category_ids:
        return True
    return category_id is not None and category_id in subscription.category_ids


def tag_filter_matches(subscription: Subscription, tag_ids: Optional[Iterable[int]]) -> bool:
    """True when the subscription is unscoped by tag or shares a tag with the event."""
    if not subscription.tag_ids:
        return True
    return _intersects(subscription.tag_ids, tag_ids)


def evaluate_scope(subscription: Subscription, trigger: TriggerRequest) -> ScopeDecision:
    """
    Decide whether a delivery job should proceed for this subscription.

    Ping events bypass every rule. Otherwise an inactive subscription is
    skipped first, then each configured filter must match independently.

    Args:
        subscription: Freshly fetched subscription
        trigger: Trigger request carrying the event scope snapshot

    Returns:
        ScopeDecision with deliver=False and a reason when skipped
    """
    if trigger.is_ping:
        return DELIVER

    if not subscription.active:
        return ScopeDecision(False, "inactive")

    if not group_filter_matches(subscription, trigger.group_ids):
        return ScopeDecision(False, "group_mismatch")

    if not category_filter_matches(subscription, trigger.category_id):
        return ScopeDecision(False, "category_mismatch")

    if not tag_filter_matches(subscription, trigger.tag_ids):
        return ScopeDecision(False, "tag_mismatch")

    return DELIVER
