# Gatekeeper Schemas
from gatekeeper.schemas.auth import MessageResponse, TokenRequest, TokenResponse
from gatekeeper.schemas.webhook import WebhookRequest, WebhookResponse

__all__ = [
    "MessageResponse",
    "TokenRequest",
    "TokenResponse",
    "WebhookRequest",
    "WebhookResponse",
]
