"""Pydantic schemas for token endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.services.token_store import SubjectId


class TokenRequest(BaseModel):
    """Request for a new bearer token.

    ``userId`` keeps its JSON type. Presence and truthiness are checked by
    the lifecycle controller so a missing, empty, zero or false value gets
    the gateway's own 400 message.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: SubjectId | None = Field(default=None, alias="userId")
    hwid: str | None = Field(default=None, description="Optional device identifier")


class TokenResponse(BaseModel):
    """Response carrying a newly issued or refreshed token."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str
    expires_at: datetime = Field(serialization_alias="expiresAt")
    expires_in: int = Field(
        serialization_alias="expiresIn", description="Remaining lifetime in seconds"
    )


class MessageResponse(BaseModel):
    """Generic success response."""

    success: bool = True
    message: str
