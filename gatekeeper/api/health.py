"""Health check endpoint. Accessible without authentication."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report liveness. The gateway has no external dependencies to probe."""
    return HealthResponse(status="healthy", timestamp=datetime.now(UTC))
