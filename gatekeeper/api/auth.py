"""Token issuance, refresh and revocation endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from gatekeeper.api.deps import AuthenticatedSession, require_api_key, require_session
from gatekeeper.schemas.auth import MessageResponse, TokenRequest, TokenResponse
from gatekeeper.services.errors import InvalidInputError, TokenStateError
from gatekeeper.services.token_lifecycle import IssuedToken
from gatekeeper.services.tokens import TokenServices, get_token_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(issued: IssuedToken) -> TokenResponse:
    return TokenResponse(
        token=issued.token,
        expires_at=issued.expires_at,
        expires_in=issued.expires_in,
    )


def _stale_token(error: TokenStateError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.status.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post(
    "/token",
    response_model=TokenResponse,
    dependencies=[Depends(require_api_key)],
)
async def issue_token(
    request: TokenRequest,
    services: TokenServices = Depends(get_token_services),
) -> TokenResponse:
    """Issue a bearer token for ``userId``.

    Requires the X-API-Key header. Rate limited per client IP.
    """
    try:
        issued = services.controller.issue(request.user_id, request.hwid)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return _token_response(issued)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    session: AuthenticatedSession = Depends(require_session),
    services: TokenServices = Depends(get_token_services),
) -> TokenResponse:
    """Exchange the presented token for a new one.

    The presented token is revoked; the new token carries the same
    userId and hwid with a fresh lifetime.
    """
    try:
        issued = services.controller.refresh(session.token)
    except TokenStateError as e:
        # Lost a race with a concurrent refresh/revoke of the same token
        raise _stale_token(e) from e
    return _token_response(issued)


@router.post("/revoke", response_model=MessageResponse)
async def revoke_token(
    session: AuthenticatedSession = Depends(require_session),
    services: TokenServices = Depends(get_token_services),
) -> MessageResponse:
    """Revoke the presented token immediately."""
    try:
        services.controller.revoke(session.token)
    except TokenStateError as e:
        # A concurrent refresh or revoke consumed the token first
        raise _stale_token(e) from e
    return MessageResponse(message="Token revoked")
