"""Forwards authorized payloads to the private downstream webhook.

The downstream URL is read from settings and never leaves this module;
failures are logged with the downstream response but reported to callers
only as a WebhookDeliveryError with a fixed message.
"""

import logging
from typing import Any

import httpx

from gatekeeper.core.config import settings
from gatekeeper.services.errors import WebhookDeliveryError, WebhookNotConfiguredError

logger = logging.getLogger(__name__)

# Only these keys are relayed; anything else in the request body is dropped
FORWARDED_FIELDS = ("content", "embeds", "username", "avatar_url")


def build_payload(body: dict[str, Any]) -> dict[str, Any]:
    """Keep only the relayed fields that carry a value."""
    return {key: body[key] for key in FORWARDED_FIELDS if body.get(key)}


async def forward_webhook(payload: dict[str, Any]) -> None:
    """POST ``payload`` as JSON to the configured webhook.

    Raises:
        WebhookNotConfiguredError: If DISCORD_WEBHOOK_URL is empty.
        WebhookDeliveryError: On transport errors or a non-2xx response.
    """
    webhook_url = settings.discord_webhook_url
    if not webhook_url:
        logger.error("DISCORD_WEBHOOK_URL not configured")
        raise WebhookNotConfiguredError("Webhook URL not configured")

    try:
        async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as client:
            response = await client.post(
                webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
    except httpx.HTTPError as e:
        logger.error(f"Discord webhook error: {e}")
        raise WebhookDeliveryError("Webhook request failed") from e

    if response.status_code >= 400:
        logger.error(f"Discord webhook error: HTTP {response.status_code} {response.text[:500]}")
        raise WebhookDeliveryError(
            "Webhook request was rejected", status_code=response.status_code
        )
