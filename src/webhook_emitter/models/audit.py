"""
Module: audit.py
Description: Staff action audit history model.

Audit entries are append-only; the delivery pipeline writes one when it
deactivates a subscription.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

WEBHOOK_DEACTIVATE = "webhook_deactivate"


def generate_entry_id() -> str:
    return f"aud_{uuid4().hex[:12]}"


class AuditEntry(BaseModel):
    """
    One audit history entry.

    Attributes:
        entry_id: Unique entry identifier
        action: Action performed (e.g. 'webhook_deactivate')
        acting_user: Identity that performed the action
        subject: Identifier of the affected subscription
        status_code: HTTP status that triggered the action
        created_at: When the action was recorded
    """

    entry_id: str = Field(default_factory=generate_entry_id, pattern=r"^aud_[a-z0-9]{12}$")
    action: str = Field(..., min_length=1)
    acting_user: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    status_code: Optional[int] = Field(default=None)
    created_at: datetime
