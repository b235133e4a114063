"""
Module: deactivation.py
Description: Subscription deactivation with audit trail.

Invoked when a subscription answers 404/410 on the attempt that
exhausts its retry budget.
"""

from datetime import datetime, timezone

from webhook_emitter.models.audit import WEBHOOK_DEACTIVATE, AuditEntry
from webhook_emitter.storage.dynamodb import AuditLogStore, SubscriptionStore
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)


async def deactivate_subscription(
    subscription_id: str,
    status_code: int,
    *,
    subscriptions: SubscriptionStore,
    audit_log: AuditLogStore,
    actor: str
) -> AuditEntry:
    """
    Deactivate a subscription and record who did it and why.

    Args:
        subscription_id: Subscription to deactivate
        status_code: HTTP status that exhausted the budget
        subscriptions: Subscription store
        audit_log: Audit history store
        actor: Acting system identity

    Returns:
        The appended AuditEntry
    """
    await subscriptions.deactivate(subscription_id)

    entry = AuditEntry(
        action=WEBHOOK_DEACTIVATE,
        acting_user=actor,
        subject=subscription_id,
        status_code=status_code,
        created_at=datetime.now(timezone.utc)
    )
    await audit_log.append(entry)

    logger.warning(
        "Webhook subscription deactivated",
        subscription_id=subscription_id,
        status_code=status_code,
        acting_user=actor,
        audit_entry_id=entry.entry_id
    )

    return entry
