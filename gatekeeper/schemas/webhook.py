"""Pydantic schemas for the webhook relay."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from gatekeeper.services.token_store import SubjectId


class WebhookRequest(BaseModel):
    """Discord-style message to relay. Unknown fields are dropped.

    Values are passed through as sent; the downstream webhook is the one
    that judges their shape.
    """

    model_config = ConfigDict(extra="ignore")

    content: Any = None
    embeds: Any = None
    username: Any = None
    avatar_url: Any = None


class WebhookResponse(BaseModel):
    success: bool = True
    message: str
    userId: SubjectId
