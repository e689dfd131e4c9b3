"""Request guards: API-key check for issuance, bearer-token check for everything else."""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from gatekeeper.core.config import settings
from gatekeeper.core.request_utils import extract_bearer_token
from gatekeeper.services.token_store import SessionRecord
from gatekeeper.services.tokens import TokenServices, get_token_services

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedSession:
    """The presented token and the record the gate accepted for it."""

    token: str
    record: SessionRecord


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> None:
    """Verify the shared API key trusted clients use to obtain tokens.

    Raises:
        HTTPException: 401 if the key is missing or does not match.
    """
    if not x_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="API key required")

    if not settings.api_key:
        logger.error("API_KEY not configured; rejecting token request")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    # Use constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(x_api_key.encode(), settings.api_key.encode()):
        logger.warning("Rejected token request: invalid API key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


async def require_session(
    request: Request,
    services: TokenServices = Depends(get_token_services),
) -> AuthenticatedSession:
    """Resolve the bearer token through the authentication gate.

    Raises:
        HTTPException: 401 with the gate's message for unknown, revoked
            or expired tokens, or when no bearer token is present.
    """
    token = extract_bearer_token(request)
    if not token:
        raise _unauthorized("Bearer token required")

    result = services.gate.check(token)
    if not result.is_valid or result.record is None:
        logger.debug(f"Token rejected: {result.status.value} on {request.url.path}")
        raise _unauthorized(result.status.message)

    return AuthenticatedSession(token=token, record=result.record)
