"""
Module: push.py
Description: Push webhook delivery over HTTP.

Implements the HTTP POST of a prepared envelope with timeout handling.
Any transport-level failure yields no response at all, which the
classifier treats as inconclusive.
"""

import time
from typing import Dict, Optional

import httpx

from webhook_emitter.models.delivery import DeliveryResponse, Envelope
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)


def _encode_headers(headers: Dict[str, str]) -> Dict[str, bytes]:
    """Send header values as UTF-8 bytes; httpx only encodes str values as ASCII."""
    return {name: value.encode("utf-8") for name, value in headers.items()}


class PushDeliveryClient:
    """
    HTTP client for pushing webhook envelopes to subscribers.

    Handles delivery attempts with proper timeout and error handling
    for network issues. Status codes are never raised as errors: every
    response that carries a status is returned to the caller.
    """

    def __init__(self, timeout_seconds: int = 10, max_response_body_length: int = 10000):
        """
        Initialize push delivery client.

        Args:
            timeout_seconds: HTTP timeout in seconds
            max_response_body_length: Characters of response body kept

        Raises:
            ValueError: If timeout_seconds is not positive
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self.timeout = httpx.Timeout(timeout_seconds, connect=timeout_seconds)
        self.max_response_body_length = max_response_body_length

        logger.debug(
            "Push delivery client initialized",
            timeout_seconds=timeout_seconds
        )

    async def deliver(self, url: str, envelope: Envelope) -> Optional[DeliveryResponse]:
        """
        POST an envelope to a subscriber URL.

        Args:
            url: Subscriber payload URL
            envelope: Headers and body to send

        Returns:
            DeliveryResponse if an HTTP status was obtained, None otherwise
        """
        if not isinstance(envelope, Envelope):
            raise ValueError("envelope must be an Envelope instance")

        url = url.strip()
        started = time.monotonic()

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=False) as client:
            try:
                logger.debug(
                    "Attempting webhook delivery",
                    url=url,
                    event_id=envelope.headers.get("X-Event-Id")
                )

                response = await client.post(
                    url,
                    content=envelope.content,
                    headers=_encode_headers(envelope.headers)
                )

            except httpx.TimeoutException:
                logger.warning(
                    "Webhook delivery timeout",
                    url=url,
                    event_id=envelope.headers.get("X-Event-Id")
                )
                return None

            except httpx.HTTPError as e:
                logger.warning(
                    "Webhook delivery network error",
                    url=url,
                    event_id=envelope.headers.get("X-Event-Id"),
                    error=str(e),
                    error_type=type(e).__name__
                )
                return None

            except (httpx.InvalidURL, ValueError) as e:
                logger.warning(
                    "Webhook request could not be built",
                    url=url,
                    event_id=envelope.headers.get("X-Event-Id"),
                    error=str(e),
                    error_type=type(e).__name__
                )
                return None

        duration_ms = int((time.monotonic() - started) * 1000)

        logger.info(
            "Webhook delivery response received",
            url=url,
            event_id=envelope.headers.get("X-Event-Id"),
            status_code=response.status_code,
            response_time_ms=duration_ms
        )

        return DeliveryResponse(
            status=response.status_code,
            body=response.text[:self.max_response_body_length],
            headers=dict(response.headers),
            duration_ms=duration_ms
        )
