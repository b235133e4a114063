"""
Module: errors.py
Description: Exceptions raised by the webhook delivery pipeline.

Both exceptions are fatal for the attempt that raises them: the SQS
worker logs them as rejected jobs and does not return the message
to the queue.
"""


class WebhookDeliveryError(Exception):
    """Base class for non-retryable delivery job failures."""


class InvalidParameters(WebhookDeliveryError, ValueError):
    """
    A required trigger request field is missing or blank.

    Attributes:
        field: Name of the offending field
    """

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Invalid or missing parameter: {field}")


class MalformedPayload(WebhookDeliveryError, ValueError):
    """The raw event payload could not be parsed as JSON."""

    def __init__(self, event_type: str, reason: str):
        self.event_type = event_type
        self.reason = reason
        super().__init__(f"Malformed payload for event '{event_type}': {reason}")
