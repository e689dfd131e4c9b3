"""Request utility functions for handling common request operations."""

import ipaddress
import logging

from fastapi import Request

logger = logging.getLogger(__name__)


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request, trusted_proxies: set[str] | None = None) -> str:
    """Get the client IP address used as the rate-limit key.

    X-Forwarded-For and X-Real-IP can be spoofed by clients, so they are
    honoured only when the direct peer is one of ``trusted_proxies``.
    With no trusted proxies configured the direct peer address is used.

    Returns:
        Client IP address, or "unknown" when the transport exposes none
    """
    direct_ip = request.client.host if request.client else None
    from_trusted_proxy = bool(trusted_proxies) and direct_ip in trusted_proxies

    if from_trusted_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
            if _is_valid_ip(client_ip):
                return client_ip
            logger.warning(f"Invalid IP in X-Forwarded-For header: {client_ip}")

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Real-IP: {real_ip}")
    elif request.headers.get("X-Forwarded-For"):
        logger.debug(f"Ignoring X-Forwarded-For from untrusted source: {direct_ip}")

    return direct_ip or "unknown"


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:]  # Remove "Bearer " prefix
        return token or None
    return None
