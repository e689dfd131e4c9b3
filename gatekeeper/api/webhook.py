"""Webhook relay endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from gatekeeper.api.deps import AuthenticatedSession, require_session
from gatekeeper.schemas.webhook import WebhookRequest, WebhookResponse
from gatekeeper.services.errors import WebhookDeliveryError, WebhookNotConfiguredError
from gatekeeper.services.webhook_forwarder import build_payload, forward_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/discord", response_model=WebhookResponse)
async def relay_discord_webhook(
    request: WebhookRequest,
    session: AuthenticatedSession = Depends(require_session),
) -> WebhookResponse:
    """Relay a message to the private Discord webhook.

    At least one of ``content`` or ``embeds`` is required. Downstream
    errors are reported without exposing the webhook's response.
    """
    payload = build_payload(request.model_dump(exclude_none=True))
    if "content" not in payload and "embeds" not in payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="content or embeds is required",
        )

    try:
        await forward_webhook(payload)
    except WebhookNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook URL not configured",
        ) from e
    except WebhookDeliveryError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to send webhook to Discord",
                "message": "The webhook request was rejected by Discord",
            },
        ) from e

    subject_id = session.record.subject_id
    logger.info(f"Webhook sent successfully for userId: {subject_id}")
    return WebhookResponse(message="Webhook sent successfully", userId=subject_id)
